# -*- coding: utf-8 -*-
"""
fem_smoother/utils.py (ver.1.0 / 2026-10-19)

ユーティリティ:
- Logger: ターミナルとログファイルへの二重出力 (with文で sys.stdout を差し替え)
- SCRIPT_NAME: スクリプトバージョン識別子
"""

import os
import sys
from datetime import datetime

# スクリプト識別
SCRIPT_NAME = "fem_smoother"
SCRIPT_VERSION = f"{SCRIPT_NAME}_v1.0"


class Logger:
    """
    Dual-output stdout tee for smoothing runs.

    Every write goes to the original terminal stream and to the log file, and
    the file is fsync'ed so a crashed run still leaves its log behind.
    Used as a context manager it installs itself as sys.stdout and restores
    the previous stream on exit.
    """

    def __init__(self, filename: str, script_name: str = SCRIPT_VERSION):
        self.filename = filename
        self.terminal = sys.stdout
        self._previous_stdout = None
        self.log = open(filename, 'w', encoding='utf-8', buffering=1)
        self.closed = False
        self.log.write(f"Smoothing Log - {script_name}\n")
        self.log.write(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        self.log.write("=" * 80 + "\n")
        self.flush()

    def write(self, message: str):
        if self.closed:
            return
        self.terminal.write(message)
        self.log.write(message)
        self.flush()

    def flush(self):
        if self.closed:
            return
        self.terminal.flush()
        self.log.flush()
        os.fsync(self.log.fileno())

    def close(self):
        if not self.closed:
            self.flush()
            self.closed = True
            self.log.close()

    def __enter__(self) -> 'Logger':
        self._previous_stdout = sys.stdout
        sys.stdout = self
        return self

    def __exit__(self, exc_type, exc, tb):
        sys.stdout = self._previous_stdout
        self.close()
        return False
