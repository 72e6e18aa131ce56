"""
API 客户端

提供 Modrinth 与 CurseForge 两个模组仓库的统一访问接口。
"""

import asyncio
from typing import Any, List, Optional

import aiohttp
from loguru import logger

from modbreeze import __version__
from modbreeze.models import Candidate, CurseForgeId, ModrinthId, RegistryId
from modbreeze.exceptions import (
    APIError,
    APINotFoundError,
    APIRateLimitError,
    APIServerError,
)


MODRINTH_BASE_URL = "https://api.modrinth.com/v2"
CURSEFORGE_BASE_URL = "https://api.curseforge.com/v1"
CURSEFORGE_PAGE_SIZE = 50
USER_AGENT = f"modbreeze/{__version__}"


class _BaseClient:
    """带 session 管理和状态码处理的基础客户端"""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owned_session = True
        return self._session

    def _headers(self) -> dict:
        return {"User-Agent": USER_AGENT, "Accept": "application/json"}

    async def _request(self, url: str, params: Optional[dict] = None) -> Any:
        """发送 GET 请求并返回 JSON，非 200 状态码抛出对应的 APIError"""
        try:
            async with self.session.get(
                url, params=params, headers=self._headers()
            ) as response:
                if response.status == 200:
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise APIError(
                            f"无法解析 API 响应 (URL: {response.url}): {e}",
                            response=response,
                        ) from e
                message = f"API 请求失败 (状态码: {response.status}，URL: {response.url})"
                if response.status == 404:
                    raise APINotFoundError(message, response=response)
                if response.status == 429:
                    raise APIRateLimitError(message, response=response)
                if response.status >= 500:
                    raise APIServerError(message, response=response)
                raise APIError(message, response=response)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise APIError(
                f"网络请求失败: {str(e) or type(e).__name__}", context={"url": url}
            ) from e

    @staticmethod
    def _malformed(url: str, error: Exception) -> APIError:
        return APIError(
            f"API 响应格式异常 (URL: {url}): {type(error).__name__}: {error}",
            context={"url": url},
        )

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class ModrinthClient(_BaseClient):
    """Modrinth API 客户端"""

    async def list_candidates(self, idx: str) -> List[Candidate]:
        """获取项目的全部版本（最新在前）"""
        url = f"{MODRINTH_BASE_URL}/project/{idx}/version"
        response = await self._request(url)
        candidates = []
        try:
            for version in response or []:
                candidate = Candidate.from_modrinth(version)
                if candidate is not None:
                    candidates.append(candidate)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise self._malformed(url, e) from e
        return candidates

    async def project_for_version(self, version_id: str) -> ModrinthId:
        """通过版本 ID 查询所属项目"""
        url = f"{MODRINTH_BASE_URL}/version/{version_id}"
        response = await self._request(url)
        try:
            return ModrinthId(str(response["project_id"]))
        except (KeyError, TypeError) as e:
            raise self._malformed(url, e) from e


class CurseForgeClient(_BaseClient):
    """CurseForge API 客户端"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        super().__init__(session)
        self.api_key = api_key

    def _headers(self) -> dict:
        headers = super()._headers()
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def list_candidates(self, mod_id: int) -> List[Candidate]:
        """分页获取模组的全部文件"""
        candidates: List[Candidate] = []
        index = 0
        url = f"{CURSEFORGE_BASE_URL}/mods/{mod_id}/files"
        while True:
            response = await self._request(
                url, {"index": index, "pageSize": CURSEFORGE_PAGE_SIZE}
            )
            try:
                files = response.get("data") or []
                candidates.extend(Candidate.from_curseforge(f) for f in files)
                total = (response.get("pagination") or {}).get("totalCount", 0)
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                raise self._malformed(url, e) from e

            index += len(files)
            if not files or index >= total:
                break
        logger.debug(f"CurseForge 模组 {mod_id} 共 {len(candidates)} 个文件")
        return candidates


class RegistryClient:
    """
    模组仓库门面

    根据 RegistryId 的类型把请求分发到对应的仓库客户端。
    """

    def __init__(
        self,
        curseforge_api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        modrinth: Optional[ModrinthClient] = None,
        curseforge: Optional[CurseForgeClient] = None,
    ):
        self.modrinth = modrinth or ModrinthClient(session)
        self.curseforge = curseforge or CurseForgeClient(curseforge_api_key, session)

    async def list_candidates(self, mod_id: RegistryId) -> List[Candidate]:
        """列出模组的候选文件"""
        if isinstance(mod_id, CurseForgeId):
            return await self.curseforge.list_candidates(mod_id.value)
        if isinstance(mod_id, ModrinthId):
            return await self.modrinth.list_candidates(mod_id.value)
        raise TypeError(f"未知的仓库 ID 类型: {type(mod_id).__name__}")

    async def project_for_version(self, version_id: str) -> ModrinthId:
        """查询 Modrinth 版本所属的项目"""
        return await self.modrinth.project_for_version(version_id)

    async def close(self):
        """关闭客户端"""
        await self.modrinth.close()
        await self.curseforge.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
