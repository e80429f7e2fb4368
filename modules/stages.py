#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
请求流水线的各个阶段

每个阶段都是 stage(ctx) 形式的函数：返回 None 表示继续执行下一个阶段，
返回响应对象表示请求到此结束（短路）。需要依赖配置或外部对象的阶段
通过 make_*_stage 工厂函数创建。
"""

import os
import time
import logging
from functools import partial
from flask import after_this_request, current_app, make_response, send_file, session
from werkzeug.exceptions import RequestEntityTooLarge, UnsupportedMediaType
from werkzeug.security import safe_join
from .request_context import Menu

logger = logging.getLogger('Gatehouse.Pipeline')
http_logger = logging.getLogger('Gatehouse.HTTP')

FAVICON_PATH = '/favicon.ico'
FAVICON_MAX_AGE = 86400  # 1天
FLASH_SESSION_KEY = '_flashes'
READ_METHODS = ('GET', 'HEAD')

# 1. 响应压缩
def make_compression_stage(compress):
    """按请求注册 Flask-Compress，压缩在响应返回前协商完成"""
    def compression(ctx):
        after_this_request(compress.after_request)
        return None
    return compression

# 2. favicon
def make_favicon_stage(icon_path, max_age=FAVICON_MAX_AGE):
    def favicon(ctx):
        request = ctx.request
        if request.path != FAVICON_PATH:
            return None

        if request.method not in READ_METHODS:
            status = 200 if request.method == 'OPTIONS' else 405
            response = make_response('', status)
            response.headers['Allow'] = 'GET, HEAD, OPTIONS'
            return response

        if not os.path.isfile(icon_path):
            logger.warning(f"favicon文件不存在: {icon_path}")
            return None

        return send_file(icon_path, mimetype='image/x-icon', max_age=max_age)
    return favicon

# 3. HTTP访问日志
def make_access_log_stage(formatter, enabled=True):
    """请求完成后按 httplog 格式写一行日志；生产环境由外部日志管道负责，不在此记录"""
    def access_log(ctx):
        if not enabled:
            return None

        started = time.perf_counter()
        request = ctx.request

        @after_this_request
        def write_access_log(response):
            elapsed_ms = (time.perf_counter() - started) * 1000
            line = formatter.format(request, response, elapsed_ms)
            if line:
                http_logger.info(line)
            return response

        return None
    return access_log

# 4. Cookie解析
def cookies(ctx):
    ctx.cookies = dict(ctx.request.cookies)
    return None

# 5. 静态文件
def make_static_stage(public_dir, max_age=0):
    """public 目录下存在对应文件则直接返回，否则交给后续阶段"""
    def static(ctx):
        request = ctx.request
        if request.method not in READ_METHODS:
            return None

        file_path = resolve_static_file(public_dir, request.path)
        if file_path is None:
            return None

        return send_file(file_path, max_age=max_age)
    return static

def resolve_static_file(public_dir, path):
    """
    将请求路径映射为 public 目录下的文件

    Returns:
        str|None: 文件路径；越出目录、不存在或是目录时返回 None
    """
    relative = path.lstrip('/')
    if not relative or path.endswith('/'):
        relative = relative + 'index.html'

    file_path = safe_join(public_dir, relative)
    if file_path is None or not os.path.isfile(file_path):
        return None
    return file_path

# 6. 会话
def session_stage(ctx):
    """从Redis加载会话并绑定到请求上下文，之前的阶段不会访问会话存储"""
    ctx.session = current_app.session_interface.attach(current_app, ctx.request, session._get_current_object())
    return None

# 7. flash消息读取函数
def drain_flash_messages(store):
    """
    取出并清空会话中的flash消息，按类别分组

    Args:
        store: 会话对象

    Returns:
        dict: 类别 -> 消息列表，类别按首次出现顺序排列
    """
    flashes = store.pop(FLASH_SESSION_KEY, None) or []
    grouped = {}
    for category, message in flashes:
        grouped.setdefault(category, []).append(message)
    return grouped

def flash_bridge(ctx):
    ctx.flash = partial(drain_flash_messages, ctx.session)
    return None

# 8. 请求体解析
def _parse_urlencoded(request, data):
    return {key: values[0] if len(values) == 1 else values for key, values in request.form.lists()}

def _parse_text(request, data):
    charset = request.mimetype_params.get('charset', 'utf-8')
    try:
        return data.decode(charset, errors='replace')
    except LookupError:
        raise UnsupportedMediaType(f"不支持的字符集: {charset}")

def _parse_json(request, data):
    if not data:
        return {}
    # 格式错误时抛出 BadRequest(400)
    return request.get_json()

def select_body_parser(request):
    if request.mimetype == 'application/x-www-form-urlencoded':
        return _parse_urlencoded
    if request.mimetype == 'text/plain':
        return _parse_text
    if request.is_json:
        return _parse_json
    return None

def make_body_stage(limit):
    """urlencoded、纯文本、JSON三种请求体共用同一个大小上限（字节）"""
    def body(ctx):
        request = ctx.request
        parser = select_body_parser(request)
        if parser is None:
            return None

        if request.content_length is not None and request.content_length > limit:
            raise RequestEntityTooLarge(f"请求体大小 {request.content_length} 字节超过上限 {limit} 字节")

        # 没有 Content-Length（分块传输）时最多读取 limit + 1 字节，超出部分由 Werkzeug 抛出 413
        request.max_content_length = limit + 1
        data = request.get_data(cache=True)
        if len(data) > limit:
            raise RequestEntityTooLarge(f"请求体大小 {len(data)} 字节超过上限 {limit} 字节")

        ctx.body = parser(request, data)
        return None
    return body

# 9. 菜单等页面级状态
def make_locals_stage(menu_entries):
    def locals_stage(ctx):
        ctx.menu = Menu.from_config(menu_entries)
        return None
    return locals_stage
