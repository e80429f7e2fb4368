#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
from jinja2 import pass_context
from markupsafe import Markup, escape
from .utils import format_number

logger = logging.getLogger('Gatehouse.Templates')

ALERT_OPEN = (
    '<div class="alert alert-{category} alert-dismissible" role="alert">'
    '<button type="button" class="close" data-dismiss="alert" aria-label="Close">'
    '<span aria-hidden="true">&times;</span></button>'
)
DANGER_GLYPH = '<span class="glyphicon glyphicon-exclamation-sign" aria-hidden="true"></span> '

def render_flash_messages(messages):
    """
    将按类别分组的flash消息渲染为可直接嵌入页面的HTML

    Args:
        messages (dict): 类别 -> 消息列表

    Returns:
        Markup: 已转义的HTML
    """
    response = []

    for category, category_messages in (messages or {}).items():
        el = ALERT_OPEN.format(category=escape(category))

        if category == 'danger':
            el += DANGER_GLYPH

        rows = [str(escape(message)) for message in category_messages]

        if len(rows) > 1:
            el += '<p>' + '</p>\n<p>'.join(rows) + '</p>'
        else:
            el += ''.join(rows)

        el += '</div>'
        response.append(el)

    return Markup('\n'.join(response))

@pass_context
def flash_messages(context):
    """
    模板辅助函数：渲染并消费当前请求的flash消息

    只有在真正渲染页面时才读取消息，避免读取后又发生重定向导致消息丢失。
    模板上下文中没有 flash 读取函数时（例如请求之外渲染）返回空字符串。
    """
    reader = context.get('flash')
    if not callable(reader):
        return ''

    return render_flash_messages(reader())

def num(value):
    """整数格式：千位空格分隔，如 1 234 567"""
    return Markup(format_number(value, 0, ',', ' '))

def dec(value):
    """三位小数格式：逗号作小数点，如 1 234,500"""
    return Markup(format_number(value, 3, ',', ' '))

def register_template_helpers(app):
    """
    注册模板辅助函数和过滤器

    num/dec 同时注册为过滤器，既可以 {{ value|num }}，
    也可以 {% filter num %}...{% endfilter %} 包裹一段内容。
    """
    app.jinja_env.globals.update(
        flash_messages=flash_messages,
        num=num,
        dec=dec,
    )
    app.jinja_env.filters['num'] = num
    app.jinja_env.filters['dec'] = dec
    logger.debug("模板辅助函数已注册")
