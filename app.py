#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import json
import secrets
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask
from flask_compress import Compress
from werkzeug.middleware.proxy_fix import ProxyFix
from modules.utils import get_app_subdir, parse_size
from modules.config_manager import load_config, merge_config, resolve_proxy_hops, DEFAULT_CONFIG
from modules.template_helpers import register_template_helpers
from modules.session_store import configure_session_store
from modules.pipeline import build_pipeline
from modules.error_renderer import ErrorRenderer
from modules.log_maintenance import LOG_FILE_NAME, schedule_log_cleanup
from modules.routes import main_bp

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
FILE_HANDLER_NAME = 'gatehouse-file'
CONSOLE_HANDLER_NAME = 'gatehouse-console'

# 应用日志记录器
logger = logging.getLogger('Gatehouse')

def setup_logging(config, log_dir=None):
    """
    配置日志：轮转文件 + 控制台

    处理器挂在根记录器上，Werkzeug、Flask-Session、APScheduler 的日志同样写入 app.log。
    重复调用不会重复添加处理器。

    Args:
        config (dict): 应用配置，读取 logLevel
        log_dir (str, optional): 日志目录，默认为应用根目录下的 logs/

    Returns:
        str: 日志目录
    """
    log_dir = log_dir or get_app_subdir('logs')
    os.makedirs(log_dir, exist_ok=True)

    level = getattr(logging, str(config.get('logLevel', 'INFO')).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    logger.setLevel(level)

    # 如果已经设置过处理器，只更新级别
    if any(handler.get_name() == FILE_HANDLER_NAME for handler in root_logger.handlers):
        return log_dir

    log_formatter = logging.Formatter(LOG_FORMAT)

    # 文件处理器
    file_handler = RotatingFileHandler(os.path.join(log_dir, LOG_FILE_NAME), maxBytes=10485760, backupCount=10, encoding='utf-8')
    file_handler.setFormatter(log_formatter)
    file_handler.set_name(FILE_HANDLER_NAME)

    # 控制台处理器
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.set_name(CONSOLE_HANDLER_NAME)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)
    return log_dir

def create_app(config=None, blueprints=None, session_client=None):
    """
    创建并配置Flask应用

    Args:
        config (dict, optional): 配置，覆盖 DEFAULT_CONFIG 中的同名项
        blueprints (list, optional): 业务路由蓝图，默认使用内置首页
        session_client (optional): 会话存储使用的Redis客户端，默认按配置创建

    Returns:
        Flask: 应用实例
    """
    config = merge_config(DEFAULT_CONFIG, config or {})

    # 静态文件由流水线中的 static 阶段处理
    app = Flask(__name__, static_folder=None)
    app.config['GATEHOUSE'] = config

    secret = config.get('secret')
    if not secret:
        secret = secrets.token_hex(32)
        logger.warning("未配置 secret，已随机生成应用密钥")
    app.secret_key = secret

    # 反向代理：用于获取客户端真实IP
    hops = resolve_proxy_hops(config.get('proxy'))
    if hops:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops)
        logger.info(f"已信任反向代理头，代理层数: {hops}")

    # 表单字段内存上限与请求体上限保持一致
    app.config['MAX_FORM_MEMORY_SIZE'] = parse_size(config.get('maxPostSize'))

    # 压缩由流水线的 compression 阶段按请求注册
    app.config['COMPRESS_REGISTER'] = False
    compress = Compress(app)

    register_template_helpers(app)
    app.jinja_env.globals.update(app_title=config.get('title'))

    configure_session_store(app, config, client=session_client)

    public_dir = os.path.join(app.root_path, 'public')
    pipeline = build_pipeline(config, compress, public_dir, os.path.join(public_dir, 'favicon.ico'))
    pipeline.install(app)

    for blueprint in blueprints if blueprints is not None else [main_bp]:
        app.register_blueprint(blueprint)

    # 错误页必须最后注册
    ErrorRenderer(show_details=config.get('env') != 'production').install(app)

    return app

def initialize_runtime(config=None):
    """
    加载配置、初始化日志和后台任务并返回应用实例，供WSGI服务器使用
    """
    config = config or load_config()
    log_dir = setup_logging(config)

    app = create_app(config)
    app.config['LOG_CLEANUP_SCHEDULER'] = schedule_log_cleanup(config, log_dir)
    return app

if __name__ == '__main__':
    config = load_config()
    app = initialize_runtime(config)
    safe_config = {key: value for key, value in config.items() if key not in ('secret', 'pass', 'redis')}
    logger.info(f"配置已加载: {json.dumps(safe_config, ensure_ascii=False, indent=2)}")

    scheduler = app.config.get('LOG_CLEANUP_SCHEDULER')
    try:
        logger.info(f"服务启动，监听地址: http://{config['host']}:{config['port']}")
        app.run(host=config['host'], port=int(config['port']), debug=False)
    except KeyboardInterrupt:
        logger.info("接收到退出信号，服务正在关闭...")
    finally:
        if scheduler:
            scheduler.shutdown()
