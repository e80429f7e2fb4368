#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
import traceback
from flask import make_response, render_template
from werkzeug.exceptions import HTTPException

logger = logging.getLogger('Gatehouse.Errors')

ERROR_TEMPLATE = 'error.html'


def error_status(error):
    """取异常声明的HTTP状态码，未声明时为500"""
    if isinstance(error, HTTPException) and error.code:
        return error.code
    status = getattr(error, 'status_code', None)
    if isinstance(status, int) and 400 <= status < 600:
        return status
    return 500


def error_message(error):
    if isinstance(error, HTTPException):
        return error.description or error.name
    return str(error) or error.__class__.__name__


class ErrorRenderer:
    """
    流水线末端的错误页渲染

    上游任何阶段或路由抛出的异常都在这里转换为错误页面，本身不再抛出异常。
    """

    def __init__(self, template=ERROR_TEMPLATE, show_details=True):
        self.template = template
        self.show_details = show_details

    def handle(self, error):
        if error is None:
            return None

        status = error_status(error)
        message = error_message(error)

        if status >= 500:
            logger.error(f"请求处理失败 ({status}): {message}", exc_info=error)
        else:
            logger.warning(f"请求处理失败 ({status}): {message}")

        try:
            body = render_template(
                self.template,
                message=message,
                error=error,
                status=status,
                show_details=self.show_details,
                details=self._details(error),
            )
        except Exception as e:
            logger.error(f"渲染错误页面失败: {str(e)}")
            response = make_response(f"{status} {message}", status)
            response.mimetype = 'text/plain'
            return response

        response = make_response(body, status)
        if isinstance(error, HTTPException):
            # 保留 405 的 Allow 等响应头
            for name, value in error.get_headers():
                if name.lower() != 'content-type':
                    response.headers[name] = value
        return response

    def _details(self, error):
        if not self.show_details or isinstance(error, HTTPException):
            return ''
        return ''.join(traceback.format_exception(type(error), error, error.__traceback__))

    def __call__(self, error):
        return self.handle(error)

    def install(self, app):
        """注册为最后一个错误处理器"""
        app.register_error_handler(Exception, self)
