"""
ModBreeze 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。
"""

from typing import Any, Dict, Optional
import aiohttp


class ModBreezeError(Exception):
    """ModBreeze 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(ModBreezeError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class InvalidLoaderError(ConfigError):
    """整合包中指定了无效的模组加载器"""

    def __init__(self, loader: str):
        super().__init__(
            f"无效的模组加载器: '{loader}'，可选值为 forge/fabric/quilt",
            context={"loader": loader},
        )
        self.loader = loader

    def _get_default_code(self) -> str:
        return "E103"


class EmptyPackError(ConfigError):
    """整合包中没有任何模组、资源包或光影包"""

    def __init__(self, name: str = ""):
        super().__init__(
            f"整合包 '{name}' 中没有任何模组、资源包或光影包",
            context={"pack": name},
        )

    def _get_default_code(self) -> str:
        return "E104"


class SourceError(ConfigError):
    """整合包来源错误"""

    def _get_default_code(self) -> str:
        return "E105"


class APIError(ModBreezeError):
    """API 相关错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E200"


class APINotFoundError(APIError):
    """API 资源不存在"""

    def _get_default_code(self) -> str:
        return "E404"


class APIRateLimitError(APIError):
    """API 速率限制"""

    def _get_default_code(self) -> str:
        return "E429"


class APIServerError(APIError):
    """API 服务器错误"""

    def _get_default_code(self) -> str:
        return "E500"


class DownloadError(ModBreezeError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadFileError(DownloadError):
    """下载文件操作错误"""

    def _get_default_code(self) -> str:
        return "E303"


class ResolveError(ModBreezeError):
    """单个模组解析失败"""

    def __init__(self, message: str, mod_name: str, mod_id: Any):
        super().__init__(message, context={"name": mod_name, "id": str(mod_id)})
        self.mod_name = mod_name
        self.mod_id = mod_id

    def _get_default_code(self) -> str:
        return "E600"


class NoCompatibleFileError(ResolveError):
    """没有与当前版本/加载器兼容的文件"""

    def __init__(self, mod_name: str, mod_id: Any):
        super().__init__(
            f"模组 {mod_name} (ID: {mod_id}) 没有兼容的文件", mod_name, mod_id
        )

    def _get_default_code(self) -> str:
        return "E601"


class DistributionDeniedError(ResolveError):
    """作者禁止第三方分发该文件"""

    def __init__(self, mod_name: str, mod_id: Any):
        super().__init__(
            f"模组 {mod_name} (ID: {mod_id}) 的作者禁止第三方下载，请手动下载",
            mod_name,
            mod_id,
        )

    def _get_default_code(self) -> str:
        return "E602"


class CleanError(ModBreezeError):
    """清理本地目录失败"""

    def _get_default_code(self) -> str:
        return "E700"


__all__ = [
    # 基础异常
    "ModBreezeError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    "InvalidLoaderError",
    "EmptyPackError",
    "SourceError",
    # API 异常
    "APIError",
    "APINotFoundError",
    "APIRateLimitError",
    "APIServerError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadFileError",
    # 解析异常
    "ResolveError",
    "NoCompatibleFileError",
    "DistributionDeniedError",
    # 清理异常
    "CleanError",
]
