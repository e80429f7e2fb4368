#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
from flask import make_response

logger = logging.getLogger('Gatehouse.Auth')

DENIAL_BODY = 'Access denied'


class AuthGate:
    """
    全站共享账号的HTTP Basic认证

    未启用时放行所有请求；启用时用户名和密码必须与配置完全一致，
    否则返回401并附带 WWW-Authenticate 质询头，请求不会到达路由。
    """

    def __init__(self, enabled=False, user='', password='', realm='example'):
        self.enabled = bool(enabled)
        self.user = user
        self.password = password
        self.realm = realm

    @classmethod
    def from_config(cls, config):
        return cls(
            enabled=config.get('auth', False),
            user=config.get('user', ''),
            password=config.get('pass', ''),
            realm=config.get('authRealm', 'example'),
        )

    def check(self, credentials):
        """校验凭据，credentials 为 werkzeug 的 Authorization 对象或 None"""
        if credentials is None or credentials.type != 'basic':
            return False
        # 直接相等比较
        return credentials.username == self.user and credentials.password == self.password

    def challenge(self):
        response = make_response(DENIAL_BODY, 401)
        response.headers['WWW-Authenticate'] = f'Basic realm="{self.realm}"'
        response.mimetype = 'text/plain'
        return response

    def __call__(self, ctx):
        if not self.enabled:
            return None

        credentials = ctx.request.authorization
        if self.check(credentials):
            ctx.credentials = credentials
            return None

        username = credentials.username if credentials is not None else None
        logger.warning(f"HTTP认证失败: 来源 {ctx.request.remote_addr}, 用户名 {username!r}, 路径 {ctx.request.path}")
        return self.challenge()
