#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
HTTP访问日志格式化

httplog 配置可以是预定义格式名，也可以是由 :token 组成的自定义格式串，
例如 ":method :url :status :response-time ms"。
"""

import re
from datetime import datetime, timezone

PREDEFINED_FORMATS = {
    'combined': ':remote-addr - :remote-user [:date[clf]] ":method :url HTTP/:http-version" '
                ':status :res[content-length] ":referrer" ":user-agent"',
    'common': ':remote-addr - :remote-user [:date[clf]] ":method :url HTTP/:http-version" '
              ':status :res[content-length]',
    'dev': ':method :url :status :response-time ms - :res[content-length]',
    'short': ':remote-addr :remote-user :method :url HTTP/:http-version :status '
             ':res[content-length] - :response-time ms',
    'tiny': ':method :url :status :res[content-length] - :response-time ms',
}

DEFAULT_FORMAT = 'dev'

TOKEN_PATTERN = re.compile(r':([-\w]{2,})(?:\[([^\]]+)\])?')


class AccessLogFormatter:
    """把一次完成的请求格式化为一行日志"""

    def __init__(self, fmt=None):
        fmt = fmt or DEFAULT_FORMAT
        self.format_string = PREDEFINED_FORMATS.get(fmt, fmt)

    def format(self, request, response, elapsed_ms, now=None):
        now = now or datetime.now(timezone.utc)

        def replace(match):
            value = self._token(match.group(1), match.group(2), request, response, elapsed_ms, now)
            return '-' if value in (None, '') else str(value)

        line = TOKEN_PATTERN.sub(replace, self.format_string)
        return line.replace('\n', '').strip()

    def _token(self, name, arg, request, response, elapsed_ms, now):
        if name == 'method':
            return request.method
        if name == 'url':
            return request.full_path.rstrip('?') if request.query_string else request.path
        if name == 'status':
            return response.status_code
        if name == 'response-time':
            return f"{elapsed_ms:.3f}"
        if name == 'remote-addr':
            return request.remote_addr
        if name == 'remote-user':
            auth = request.authorization
            return auth.username if auth else None
        if name == 'http-version':
            protocol = request.environ.get('SERVER_PROTOCOL', '')
            return protocol.split('/', 1)[1] if '/' in protocol else protocol
        if name == 'referrer':
            return request.referrer
        if name == 'user-agent':
            return request.headers.get('User-Agent')
        if name == 'res':
            return response.headers.get(arg) if arg else None
        if name == 'req':
            return request.headers.get(arg) if arg else None
        if name == 'date':
            if arg == 'iso':
                return now.isoformat()
            if arg == 'web':
                return now.strftime('%a, %d %b %Y %H:%M:%S GMT')
            return now.strftime('%d/%b/%Y:%H:%M:%S +0000')
        return None
