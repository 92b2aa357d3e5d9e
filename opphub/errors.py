# -*- coding: utf-8 -*-
"""项目内统一的异常类型。"""

from __future__ import annotations

from typing import Optional


class OpportunityHubError(RuntimeError):
    pass


class FetchError(OpportunityHubError):
    """传输失败、超时或非 2xx 响应。"""

    def __init__(self, url: str, status_code: Optional[int], message: str) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ConfigError(OpportunityHubError):
    """配置文件无法读取或内容不合法。"""
