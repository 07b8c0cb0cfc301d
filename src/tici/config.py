"""tici 配置

配置分为以下几类：
- 存储配置：保存目录、记录版本
- tmux 配置：可执行文件、socket、单次调用超时
- 快照配置：空闲 shell 识别
- 日志配置
"""

import os
from pathlib import Path

# === 存储配置 ===
STATE_DIR = Path(os.environ.get("TICI_STATE_DIR", "~/.tmux/tici")).expanduser()
RECORD_SUFFIX = ".json"
PERSIST_VERSION = 1  # 记录格式版本，不匹配时拒绝读取

# === tmux 配置 ===
TMUX_BIN = os.environ.get("TICI_TMUX_BIN", "tmux")
TMUX_SOCKET = os.environ.get("TICI_TMUX_SOCKET") or None  # -S socket path
TMUX_TIMEOUT_SECONDS = float(os.environ.get("TICI_TMUX_TIMEOUT", "5.0"))

# === 快照配置 ===
# Foreground commands treated as an idle prompt (no command recorded)
IDLE_SHELLS = frozenset({
    "ash", "bash", "csh", "dash", "elvish", "fish", "ksh", "mksh",
    "nu", "sh", "tcsh", "xonsh", "zsh",
})
GEOMETRY_PRECISION = 4  # 相对尺寸保留的小数位
MIN_SPLIT_PERCENT = 5
MAX_SPLIT_PERCENT = 95

# === 恢复配置 ===
ATTACH_AFTER_RESTORE = os.environ.get("TICI_NO_ATTACH", "") == ""

# === 日志配置 ===
LOG_LEVEL = os.environ.get("TICI_LOG_LEVEL", "WARNING")  # 日志级别
LOG_MAX_CMD_LEN = 120  # 日志中命令截断长度
