"""持久化模块

每个目录 key 一条记录：
- 原子写入（temp + fsync + replace），失败时不留下半截记录
- checksum 校验（sha256）
- version 版本控制
- 后写覆盖先写，无历史
"""

import hashlib
import json
import os
import tempfile
import time
from pathlib import Path

from ..config import PERSIST_VERSION, RECORD_SUFFIX, STATE_DIR
from ..core.keys import DirectoryKey
from ..errors import NotFoundError, PersistenceError, SnapshotError
from ..snapshot.models import TopologySnapshot
from ..telemetry import get_logger, metrics

logger = get_logger(__name__)


def _calculate_checksum(data: bytes) -> str:
    """计算 SHA256 checksum"""
    return hashlib.sha256(data).hexdigest()


def _encode(data: dict) -> bytes:
    # Undecodable path bytes (surrogate escapes from os.getcwd) are written back as-is
    text = json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True)
    return text.encode("utf-8", errors="surrogateescape")


def _decode(payload: bytes) -> dict:
    return json.loads(payload.decode("utf-8", errors="surrogateescape"))


class StateStore:
    """Snapshot records on disk, one JSON file per DirectoryKey."""

    def __init__(self, root: Path | str | None = None, version: int = PERSIST_VERSION):
        """
        Args:
            root: 记录目录，默认使用配置 STATE_DIR
            version: 记录格式版本
        """
        self.root = Path(root) if root is not None else STATE_DIR
        self.version = version

    def path_for(self, key: DirectoryKey) -> Path:
        return self.root / f"{key.record_name}{RECORD_SUFFIX}"

    def exists(self, key: DirectoryKey) -> bool:
        return self.path_for(key).is_file()

    def write(self, key: DirectoryKey, snapshot: TopologySnapshot) -> Path:
        """保存快照，替换同一 key 的旧记录

        Returns:
            记录文件路径

        Raises:
            PersistenceError: 目录不可写、磁盘满等
        """
        path = self.path_for(key)

        body = {
            "version": self.version,
            "saved_at": time.time(),
            "snapshot": snapshot.to_dict(),
        }
        try:
            body["checksum"] = _calculate_checksum(_encode(body))
            payload = _encode(body)
        except UnicodeEncodeError as e:
            metrics.inc("persist.error", {"op": "write"})
            raise PersistenceError(f"cannot encode record for {key.path!r}: {e}") from e

        temp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # 原子写入：先写临时文件，再 replace
            fd, temp_path = tempfile.mkstemp(
                prefix=f".{key.record_name}_",
                suffix=".tmp",
                dir=path.parent,
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
            temp_path = None
        except OSError as e:
            metrics.inc("persist.error", {"op": "write"})
            logger.error(f"[Store] Write failed for {path}: {e}")
            raise PersistenceError(f"cannot write {path}: {e}") from e
        finally:
            # 清理临时文件
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        logger.info(
            f"[Store] Saved {len(snapshot.session.windows)} windows, "
            f"{snapshot.pane_count} panes to {path}"
        )
        return path

    def read(self, key: DirectoryKey) -> TopologySnapshot:
        """读取快照

        Raises:
            NotFoundError: 该目录没有保存过
            PersistenceError: 文件不可读、JSON 损坏、版本或 checksum 不匹配
        """
        path = self.path_for(key)
        if not path.is_file():
            logger.debug(f"[Store] File not found: {path}")
            raise NotFoundError(key.path, str(path))

        try:
            data = _decode(path.read_bytes())
        except OSError as e:
            metrics.inc("persist.error", {"op": "read", "reason": "io"})
            raise PersistenceError(f"cannot read {path}: {e}") from e
        except json.JSONDecodeError as e:
            metrics.inc("persist.error", {"op": "read", "reason": "json"})
            raise PersistenceError(f"invalid record {path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"invalid record {path}: not an object")

        # 检查版本
        file_version = data.get("version")
        if file_version != self.version:
            metrics.inc("persist.error", {"op": "read", "reason": "version"})
            raise PersistenceError(
                f"record {path} has version {file_version}, expected {self.version}"
            )

        # 检查 checksum
        stored_checksum = data.pop("checksum", None)
        if stored_checksum is None or _calculate_checksum(_encode(data)) != stored_checksum:
            metrics.inc("persist.error", {"op": "read", "reason": "checksum"})
            raise PersistenceError(f"record {path} failed checksum verification")

        try:
            snapshot = TopologySnapshot.from_dict(data["snapshot"])
        except (KeyError, SnapshotError) as e:
            metrics.inc("persist.error", {"op": "read", "reason": "schema"})
            raise PersistenceError(f"record {path} is malformed: {e}") from e

        logger.info(f"[Store] Loaded {key.record_name} captured at {snapshot.captured_at}")
        return snapshot
