"""
ModBreeze

根据整合包定义解析模组及其依赖，同步到本地 Minecraft 目录。
"""

__version__ = "0.1.0"
