#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
请求处理流水线

固定顺序：
    1. compression   响应压缩协商
    2. favicon       /favicon.ico 直接返回
    3. access_log    HTTP访问日志
    4. cookies       Cookie解析
    5. static        public/ 静态文件
    6. session       绑定Redis会话
    7. flash_bridge  flash消息读取函数
    8. body          请求体解析（urlencoded/text/json，共用大小上限）
    9. locals        菜单等页面级状态
   10. auth          HTTP Basic认证
之后由注册的蓝图处理路由，任何阶段抛出的异常最终交给 ErrorRenderer。

整条流水线作为一个 before_request 钩子安装，保证阶段严格按列表顺序执行。
"""

import logging
from dataclasses import dataclass
from typing import Callable, Tuple
from flask import g, request
from .access_log import AccessLogFormatter
from .auth_gate import AuthGate
from .request_context import G_ATTRIBUTE, RequestContext, get_request_context
from .utils import parse_size
from . import stages

logger = logging.getLogger('Gatehouse.Pipeline')

STAGE_ORDER = (
    'compression',
    'favicon',
    'access_log',
    'cookies',
    'static',
    'session',
    'flash_bridge',
    'body',
    'locals',
    'auth',
)


class PipelineOrderError(RuntimeError):
    """阶段顺序不满足依赖关系"""


@dataclass(frozen=True)
class Stage:
    name: str
    handler: Callable
    requires: Tuple[str, ...] = ()


class Pipeline:
    def __init__(self, stages_):
        self.stages = list(stages_)
        self._validate()

    def _validate(self):
        seen = set()
        for stage in self.stages:
            if stage.name in seen:
                raise PipelineOrderError(f"阶段重复注册: {stage.name}")
            missing = [name for name in stage.requires if name not in seen]
            if missing:
                raise PipelineOrderError(f"阶段 {stage.name} 必须位于 {', '.join(missing)} 之后")
            seen.add(stage.name)

    @property
    def names(self):
        return [stage.name for stage in self.stages]

    def run(self, ctx):
        """
        依次执行各阶段

        Returns:
            Response|None: 某个阶段短路时返回其响应，全部通过返回 None
        """
        for stage in self.stages:
            ctx.trace.append(stage.name)
            response = stage.handler(ctx)
            if response is not None:
                logger.debug("阶段 %s 结束了请求 %s", stage.name, getattr(ctx.request, 'path', None))
                return response
        return None

    def dispatch(self):
        ctx = RequestContext(request=request._get_current_object())
        setattr(g, G_ATTRIBUTE, ctx)
        return self.run(ctx)

    @staticmethod
    def template_context():
        """把 flash、menu、set_selected_menu 提供给所有模板"""
        ctx = get_request_context()
        if ctx is None:
            return {}
        return {
            'flash': ctx.flash,
            'menu': ctx.menu,
            'set_selected_menu': ctx.set_selected_menu,
        }

    def install(self, app):
        app.before_request(self.dispatch)
        app.context_processor(self.template_context)
        app.extensions['gatehouse_pipeline'] = self


def build_pipeline(config, compress, public_dir, icon_path):
    """
    按固定顺序创建流水线

    Args:
        config (dict): 应用配置
        compress: Flask-Compress 实例（COMPRESS_REGISTER 需为 False）
        public_dir (str): 静态文件目录
        icon_path (str): favicon 文件路径

    Returns:
        Pipeline
    """
    access_log_enabled = config.get('env') != 'production'
    body_limit = parse_size(config.get('maxPostSize'))

    available = {
        'compression': Stage('compression', stages.make_compression_stage(compress)),
        'favicon': Stage('favicon', stages.make_favicon_stage(icon_path)),
        'access_log': Stage('access_log', stages.make_access_log_stage(AccessLogFormatter(config.get('httplog')), access_log_enabled)),
        'cookies': Stage('cookies', stages.cookies),
        'static': Stage('static', stages.make_static_stage(public_dir)),
        'session': Stage('session', stages.session_stage, requires=('cookies',)),
        'flash_bridge': Stage('flash_bridge', stages.flash_bridge, requires=('session',)),
        'body': Stage('body', stages.make_body_stage(body_limit)),
        'locals': Stage('locals', stages.make_locals_stage(config.get('menu')), requires=('session', 'flash_bridge')),
        'auth': Stage('auth', AuthGate.from_config(config)),
    }
    pipeline = Pipeline(available[name] for name in STAGE_ORDER)

    logger.info(f"请求流水线已创建: {' -> '.join(pipeline.names)}")
    return pipeline
