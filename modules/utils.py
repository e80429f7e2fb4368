#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import re
import math

SIZE_UNITS = {
    'b': 1,
    'kb': 1024,
    'mb': 1024 ** 2,
    'gb': 1024 ** 3,
    'tb': 1024 ** 4,
}

_SIZE_PATTERN = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*(b|kb|mb|gb|tb)?\s*$', re.IGNORECASE)

def get_app_root_dir():
    """
    获取应用根目录

    Returns:
        str: 应用根目录路径
    """
    # __file__ 位于 modules/ 下，向上两级即项目根目录
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

def get_app_subdir(subdir_name):
    """
    获取应用子目录路径

    Args:
        subdir_name (str): 子目录名称，如 'config', 'logs', 'public', 'templates' 等

    Returns:
        str: 子目录的完整路径
    """
    return os.path.join(get_app_root_dir(), subdir_name)

def parse_size(value):
    """
    将大小配置解析为字节数

    支持整数（直接视为字节数）以及 "100kb"、"2mb"、"1.5MB" 这类字符串，
    单位按1024进制换算。

    Args:
        value (int|str): 大小配置

    Returns:
        int: 字节数

    Raises:
        ValueError: 无法识别的大小格式
    """
    if isinstance(value, bool):
        raise ValueError(f"无法识别的大小配置: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ValueError(f"大小配置不能为负数: {value!r}")
        return int(value)

    match = _SIZE_PATTERN.match(str(value or ''))
    if not match:
        raise ValueError(f"无法识别的大小配置: {value!r}")

    number = float(match.group(1))
    unit = (match.group(2) or 'b').lower()
    return int(math.floor(number * SIZE_UNITS[unit]))

def format_bytes(num_bytes):
    """将字节数转换为可读大小"""
    if num_bytes < 1024:
        return f"{num_bytes} 字节"
    elif num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    elif num_bytes < 1024 * 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.2f} MB"
    return f"{num_bytes / (1024 * 1024 * 1024):.2f} GB"

def format_number(value, decimals=0, dec_point='.', thousands_sep=','):
    """
    按指定小数位数和分隔符格式化数字

    无法转换为数字的输入按0处理，保证模板渲染不会因此中断。

    Args:
        value: 待格式化的值（数字或数字字符串）
        decimals (int): 小数位数
        dec_point (str): 小数点符号
        thousands_sep (str): 千位分隔符

    Returns:
        str: 格式化后的字符串
    """
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        number = 0.0

    if math.isnan(number) or math.isinf(number):
        number = 0.0

    # 避免输出 "-0"
    if round(number, decimals) == 0:
        number = 0.0

    formatted = f"{number:,.{decimals}f}"
    integer_part, _, fraction = formatted.partition('.')
    result = integer_part.replace(',', thousands_sep)
    if fraction:
        result = f"{result}{dec_point}{fraction}"
    return result
