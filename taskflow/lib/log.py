import time

from taskflow import config

__all__ = ["log"]


def log(msg: str) -> None:
    config.TASKFLOW_DIR.mkdir(parents=True, exist_ok=True)
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    entry = f"{timestamp} {msg}\n"
    with config.LOG_PATH.open("a") as f:
        f.write(entry)
