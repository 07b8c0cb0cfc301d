from tici.cli import main

main()
