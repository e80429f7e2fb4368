#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
请求级上下文

每个请求创建一个 RequestContext，由流水线各阶段按顺序填充字段，
视图和模板通过 get_request_context() 读取。
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from flask import g, has_request_context

G_ATTRIBUTE = 'request_context'


@dataclass
class MenuItem:
    key: str
    title: str
    url: str
    selected: bool = False


class Menu(list):
    """有序导航菜单，同一时间最多一个key被选中"""

    @classmethod
    def from_config(cls, entries):
        """根据配置中的菜单项创建新的菜单实例（每个请求一份）"""
        menu = cls()
        for entry in entries or []:
            menu.append(MenuItem(
                key=str(entry.get('key', '')),
                title=str(entry.get('title', '')),
                url=str(entry.get('url', '#')),
                selected=bool(entry.get('selected', False)),
            ))
        return menu

    def set_selected(self, key):
        for item in self:
            item.selected = (item.key == key)

    @property
    def selected(self):
        for item in self:
            if item.selected:
                return item
        return None


@dataclass
class RequestContext:
    """流水线各阶段共享的请求状态"""

    request: Any
    cookies: Dict[str, str] = field(default_factory=dict)
    session: Any = None
    flash: Optional[Callable[[], Dict[str, List[str]]]] = None
    body: Any = None
    menu: Menu = field(default_factory=Menu)
    credentials: Any = None
    trace: List[str] = field(default_factory=list)

    def set_selected_menu(self, key):
        self.menu.set_selected(key)


def get_request_context():
    """返回当前请求的 RequestContext，请求之外或流水线未执行时返回 None"""
    if not has_request_context():
        return None
    return g.get(G_ATTRIBUTE)
