#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import copy
import json
import logging
from .utils import get_app_subdir

# 获取日志记录器
logger = logging.getLogger('Gatehouse.Config')

# 环境变量：选择叠加的环境配置文件（如 production -> config/production.json）
ENV_VARIABLE = 'GATEHOUSE_ENV'

# 默认配置
DEFAULT_CONFIG = {
    "env": "development",  # production 时关闭HTTP访问日志
    "title": "Gatehouse",
    "host": "0.0.0.0",
    "port": 3000,
    # 反向代理信任：true / 跳数 / 空
    "proxy": False,
    # HTTP访问日志格式：combined, common, dev, short, tiny 或自定义令牌串
    "httplog": "dev",
    # 会话存储（Redis）
    "redis": {
        "host": "localhost",
        "port": 6379,
        "db": 0,
        "password": None,
    },
    "secret": "",  # Flask 应用密钥，为空时启动时随机生成
    "sessionTtl": 86400,  # 会话在Redis中的保留秒数
    # 请求体大小上限（urlencoded/text/json 共用）
    "maxPostSize": "2mb",
    # HTTP Basic 认证
    "auth": False,
    "user": "admin",
    "pass": "",
    "authRealm": "example",
    # 导航菜单 [{"key": "home", "title": "首页", "url": "/"}]
    "menu": [],
    # 日志
    "logLevel": "INFO",
    "logCleanupEnabled": True,  # 是否启用日志自动清理
    "logCleanupHours": 168,  # 保留最近多少小时的日志
    "logCleanupInterval": 24,  # 日志清理间隔（小时）
}

CONFIG_FILE = "config.json"

def merge_config(base, overrides):
    """
    递归合并配置，overrides 中的值覆盖 base 中的同名项

    Args:
        base (dict): 基础配置
        overrides (dict): 覆盖配置

    Returns:
        dict: 合并后的新配置（不修改入参）
    """
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged

def _read_json(path):
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"配置文件内容必须是JSON对象: {path}")
    return data

def load_config(config_dir=None, env=None):
    """
    加载配置文件，如果不存在则创建默认配置

    先读取 config.json，再叠加 <env>.json（若存在）。

    Args:
        config_dir (str, optional): 配置目录，默认为应用根目录下的 config/
        env (str, optional): 环境名称，默认读取 GATEHOUSE_ENV 环境变量

    Returns:
        dict: 配置字典
    """
    config_dir = config_dir or get_app_subdir('config')
    config_path = os.path.join(config_dir, CONFIG_FILE)

    # 确保config目录存在
    os.makedirs(config_dir, exist_ok=True)

    config = None
    try:
        # 文件存在且不为空
        if os.path.exists(config_path) and os.path.getsize(config_path) > 2:
            stored = _read_json(config_path)
            logger.info("成功加载配置文件")

            # 确保所有默认配置项都存在
            missing_keys = [key for key in DEFAULT_CONFIG if key not in stored]
            config = merge_config(DEFAULT_CONFIG, stored)

            # 如果有新添加的默认键，则保存更新后的配置
            if missing_keys:
                logger.info(f"配置文件缺少以下配置项，已补全默认值: {', '.join(missing_keys)}")
                save_config(config, config_path)
    except (json.JSONDecodeError, ValueError, PermissionError) as e:
        logger.warning(f"读取配置文件时出错: {str(e)}")

    if config is None:
        # 如果配置文件不存在或读取失败，创建默认配置
        logger.info("使用默认配置并创建配置文件")
        config = copy.deepcopy(DEFAULT_CONFIG)
        save_config(config, config_path)

    env = env if env is not None else os.environ.get(ENV_VARIABLE, '')
    if env:
        env_path = os.path.join(config_dir, f"{env}.json")
        if os.path.exists(env_path):
            try:
                config = merge_config(config, _read_json(env_path))
                logger.info(f"已叠加环境配置: {env}.json")
            except (json.JSONDecodeError, ValueError, PermissionError) as e:
                logger.warning(f"读取环境配置文件 {env}.json 时出错: {str(e)}")
        config['env'] = env

    return config

def save_config(config, config_path=None):
    """
    保存配置到文件

    Args:
        config (dict): 配置字典
        config_path (str, optional): 配置文件路径，如果不提供则使用默认路径

    Returns:
        bool: 保存是否成功
    """
    if not config_path:
        config_path = os.path.join(get_app_subdir('config'), CONFIG_FILE)

    # 确保config目录存在
    os.makedirs(os.path.dirname(config_path), exist_ok=True)

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, ensure_ascii=False, indent=4)
        logger.info("配置已保存到文件")
        return True
    except OSError as e:
        logger.error(f"保存配置文件时出错: {str(e)}")
        return False

def resolve_proxy_hops(proxy):
    """
    将 proxy 配置换算为需要信任的代理跳数

    Args:
        proxy: true / 数字 / 数字字符串 / 其他字符串 / 空

    Returns:
        int: 代理跳数，0 表示不信任代理头
    """
    if proxy is None or proxy is False:
        return 0
    if proxy is True:
        return 1
    if isinstance(proxy, (int, float)):
        return max(int(proxy), 0)

    text = str(proxy).strip()
    if not text or text.lower() in ('false', '0'):
        return 0
    if text.lower() == 'true':
        return 1
    if text.isdigit():
        return int(text)

    logger.warning(f"不支持按地址列表配置代理信任 ({text})，按1层代理处理")
    return 1
