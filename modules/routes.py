#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""默认路由，业务应用通过 create_app(blueprints=[...]) 替换"""

from flask import Blueprint, render_template
from .request_context import get_request_context

main_bp = Blueprint('main', __name__)

@main_bp.route('/')
def index():
    ctx = get_request_context()
    if ctx is not None:
        ctx.set_selected_menu('home')
    return render_template('index.html')
