# -*- coding: utf-8 -*-
"""opphub：远程职位与产品点子聚合。"""

__version__ = "0.3.0"
