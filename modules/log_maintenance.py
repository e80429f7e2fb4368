#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
日志保留

RotatingFileHandler 轮转出的 app.log.1、app.log.2 ... 超过保留时间后删除，
正在写入的 app.log 始终保留。
"""

import re
import time
import logging
from pathlib import Path
from apscheduler.schedulers.background import BackgroundScheduler
from .utils import format_bytes

logger = logging.getLogger('Gatehouse.Maintenance')

LOG_FILE_NAME = 'app.log'
CLEANUP_JOB_ID = 'log_cleanup_job'

_ROTATED_LOG = re.compile(r'\.log(\.\d+)?$')

def iter_expired_logs(log_dir, cutoff):
    """
    列出修改时间早于 cutoff 的日志文件

    Yields:
        tuple: (Path, 文件大小)
    """
    for path in sorted(Path(log_dir).iterdir()):
        if path.name == LOG_FILE_NAME or not _ROTATED_LOG.search(path.name):
            continue
        if not path.is_file():
            continue
        stat = path.stat()
        if stat.st_mtime < cutoff:
            yield path, stat.st_size

def cleanup_logs(log_dir, hours=168):
    """
    删除 hours 小时以前的轮转日志

    Returns:
        dict: success、files_removed、bytes_freed 等统计；失败时包含 error
    """
    cutoff = time.time() - hours * 3600
    removed = []

    try:
        for path, size in iter_expired_logs(log_dir, cutoff):
            path.unlink()
            removed.append(size)
            logger.debug(f"已删除日志文件: {path.name}")
    except OSError as e:
        logger.error(f"清理日志目录 {log_dir} 失败: {e}")
        return {"success": False, "error": str(e), "files_removed": len(removed)}

    freed = sum(removed)
    logger.info(f"日志清理完成: 删除 {len(removed)} 个超过 {hours} 小时的文件，释放 {format_bytes(freed)}")
    return {
        "success": True,
        "files_removed": len(removed),
        "bytes_freed": freed,
        "bytes_freed_readable": format_bytes(freed),
        "cutoff": time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(cutoff)),
    }

def schedule_log_cleanup(config, log_dir):
    """
    启动后台定时清理

    Returns:
        BackgroundScheduler|None: logCleanupEnabled 为假时返回 None
    """
    if not config.get('logCleanupEnabled', False):
        logger.info("日志自动清理已禁用")
        return None

    job_kwargs = {
        'log_dir': log_dir,
        'hours': int(config.get('logCleanupHours', 168)),
    }
    interval = int(config.get('logCleanupInterval', 24))

    scheduler = BackgroundScheduler()
    scheduler.add_job(cleanup_logs, 'interval', hours=interval, kwargs=job_kwargs, id=CLEANUP_JOB_ID)
    scheduler.start()

    logger.info(f"日志自动清理已启用: 保留 {job_kwargs['hours']} 小时，每 {interval} 小时执行一次")
    return scheduler
