"""Gunicorn 生产环境配置文件

使用线程工作模式，会话状态保存在Redis中，多个worker之间共享。
"""

import os

# 服务器套接字
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:3000")
backlog = 2048

# Worker 进程
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
worker_class = "gthread"
threads = int(os.getenv("GUNICORN_THREADS", "4"))
max_requests = 1000
max_requests_jitter = 50
timeout = 60
graceful_timeout = 30
keepalive = 5

# 日志
# 访问日志由应用的 access_log 阶段按 httplog 格式输出，这里不再重复记录
accesslog = None
errorlog = "-"
loglevel = os.getenv("GUNICORN_LOG_LEVEL", "info")
capture_output = True

# 进程命名
proc_name = "gatehouse"

# 服务器机制
daemon = False
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None

# 性能调优
worker_tmp_dir = "/dev/shm"  # 使用内存文件系统提升性能
preload_app = False
reload = False

# 钩子函数
def when_ready(server):
    server.log.info("Gatehouse 已就绪，监听 %s", bind)

def pre_request(worker, req):
    worker.log.debug("正在处理请求: %s %s", req.method, req.path)

def worker_exit(server, worker):
    """Worker 退出时停止该进程内的日志清理调度器"""
    app = getattr(worker, "wsgi", None)
    scheduler = app.config.get("LOG_CLEANUP_SCHEDULER") if app is not None else None
    if scheduler:
        scheduler.shutdown(wait=False)
