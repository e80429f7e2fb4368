#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
from datetime import timedelta
from flask.sessions import SessionInterface
from flask_session import Session
from redis import Redis

logger = logging.getLogger('Gatehouse.Session')

SESSION_KEY_PREFIX = 'session:'
SESSION_COOKIE_NAME = 'gatehouse.sid'

def create_redis_client(redis_config):
    """
    根据配置创建Redis客户端（连接在第一次命令时才建立）

    Args:
        redis_config (dict): 支持 url，或 host/port/db/password 等 redis.Redis 参数
    """
    redis_config = dict(redis_config or {})
    url = redis_config.pop('url', None)
    if url:
        return Redis.from_url(url)
    kwargs = {key: value for key, value in redis_config.items() if value is not None}
    return Redis(**kwargs)


class DeferredSessionInterface(SessionInterface):
    """
    延迟加载的会话接口

    Flask 在推入请求上下文时就会调用 open_session，早于 before_request 中的流水线。
    这里只创建一个空会话，真正的Redis读取由 session 阶段调用 attach 完成，
    因此 favicon 和静态文件请求不会访问会话存储。
    """

    def __init__(self, inner):
        self.inner = inner

    def __getattr__(self, name):
        # regenerate 等 Flask-Session 扩展方法
        if name == 'inner':
            raise AttributeError(name)
        return getattr(self.inner, name)

    def open_session(self, app, request):
        # sid 为空表示尚未从存储加载
        return self.inner.session_class(sid='', permanent=self.inner.permanent)

    def attach(self, app, request, session):
        """从存储加载会话数据，原地填充当前请求的会话对象"""
        stored = self.inner.open_session(app, request)
        session.update(stored)
        session.sid = stored.sid
        session.modified = False
        return session

    def save_session(self, app, session, response):
        if not session.sid:
            return
        self.inner.save_session(app, session, response)


def configure_session_store(app, config, client=None):
    """
    使用 Flask-Session 把会话保存在Redis中

    Cookie仅保存随机生成的会话ID；未修改的会话不写回存储，
    会话在存储中的过期时间为 sessionTtl 秒。

    Args:
        app: Flask应用实例
        config (dict): 应用配置
        client: 可选的Redis客户端，未提供时按 config['redis'] 创建

    Raises:
        TypeError: client 不是 redis.Redis 实例
    """
    if client is None:
        client = create_redis_client(config.get('redis'))
    elif not isinstance(client, Redis):
        # Flask-Session 会忽略非 Redis 实例并改连 localhost:6379
        raise TypeError(f"会话存储需要 redis.Redis 实例，实际为 {type(client).__name__}")

    ttl = int(config.get('sessionTtl') or 86400)

    app.config.update(
        SESSION_TYPE='redis',
        SESSION_REDIS=client,
        SESSION_KEY_PREFIX=SESSION_KEY_PREFIX,
        SESSION_PERMANENT=False,
        SESSION_REFRESH_EACH_REQUEST=False,
        PERMANENT_SESSION_LIFETIME=timedelta(seconds=ttl),
        SESSION_COOKIE_NAME=SESSION_COOKIE_NAME,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE='Lax',
    )
    Session(app)
    app.session_interface = DeferredSessionInterface(app.session_interface)
    logger.info(f"会话存储已配置: Redis, 过期时间 {ttl} 秒")
