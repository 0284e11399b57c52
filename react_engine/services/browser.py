"""
浏览器自动化 - Playwright

- BrowserManager：进程内唯一的 Chromium 实例，启动 / 关闭由 asyncio.Lock 保护
- PlaywrightBrowser：每个任务独立的 BrowserContext + Page（独立 cookie / 存储），
  首次浏览器动作时懒创建，任务结束时关闭。不同 session 的任务不会争用同一个页面。
"""
import asyncio
from typing import Optional

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, Playwright, async_playwright


class BrowserManager:
    """
    Playwright 浏览器单例管理器

    确保全局只有一个浏览器实例，避免重复启动。
    """

    def __init__(self, headless: bool = False, slow_mo_ms: int = 100, timeout_ms: int = 30000) -> None:
        self.headless = headless
        self.slow_mo_ms = slow_mo_ms
        self.timeout_ms = timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()

    async def get_browser(self) -> Browser:
        """
        获取或创建浏览器实例

        Returns:
            Browser: Playwright 浏览器实例
        """
        async with self._lock:
            if self._browser is None or not self._browser.is_connected():
                logger.info("🌐 [BrowserManager] 启动 Chromium 浏览器")
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    slow_mo=self.slow_mo_ms,
                    args=["--no-sandbox", "--disable-dev-shm-usage"],
                )
            return self._browser

    async def new_context(self) -> BrowserContext:
        """
        创建新的浏览器上下文（独立的 cookie / 存储）

        Returns:
            BrowserContext: 浏览器上下文
        """
        browser = await self.get_browser()
        context = await browser.new_context(viewport={"width": 1280, "height": 720})
        context.set_default_timeout(self.timeout_ms)
        return context

    def session(self) -> "PlaywrightBrowser":
        """为一个任务创建独立的浏览器会话（懒启动）"""
        return PlaywrightBrowser(self)

    async def close(self) -> None:
        """关闭浏览器和 Playwright 实例"""
        async with self._lock:
            if self._browser:
                await self._browser.close()
                self._browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
                logger.info("🌐 [BrowserManager] 浏览器已关闭")


class PlaywrightBrowser:
    """
    单任务浏览器会话

    navigate / click / type 失败时直接抛出 Playwright 异常，
    由 ActionExecutor 转换为失败的 StepResult。
    """

    def __init__(self, manager: BrowserManager) -> None:
        self._manager = manager
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._lock = asyncio.Lock()

    async def _get_page(self) -> Page:
        async with self._lock:
            if self._page is None or self._page.is_closed():
                if self._context is None:
                    self._context = await self._manager.new_context()
                self._page = await self._context.new_page()
            return self._page

    async def navigate(self, url: str) -> None:
        """
        导航到 URL（缺少协议时补全 https://）

        Args:
            url: 目标地址
        """
        if not url.startswith(("http://", "https://")):
            url = f"https://{url}"

        page = await self._get_page()
        logger.info(f"🔗 [PlaywrightBrowser] 导航到: {url}")
        await page.goto(url, wait_until="domcontentloaded", timeout=self._manager.timeout_ms)
        await page.wait_for_load_state("load")

    async def click(self, selector: str, click_type: str = "single") -> None:
        """
        点击元素：优先 CSS 选择器，找不到时按可见文本匹配

        Args:
            selector: CSS 选择器或元素文本
            click_type: single / double
        """
        page = await self._get_page()
        logger.info(f"👆 [PlaywrightBrowser] 点击: {selector}")

        try:
            element = await page.query_selector(selector)
        except PlaywrightError:
            # 不是合法的 CSS 选择器，按文本匹配
            element = None

        if element is None:
            await page.click(f'text="{selector}"', timeout=5000)
        elif click_type == "double":
            await element.dblclick()
        else:
            await element.click()

    async def type(self, selector: str, text: str) -> None:
        """
        在输入框中填入文本，fill 失败时回退为点击 + 键盘输入

        Args:
            selector: CSS 选择器
            text: 要输入的文本
        """
        page = await self._get_page()
        logger.info(f"⌨️ [PlaywrightBrowser] 输入到: {selector}")

        try:
            await page.fill(selector, text)
        except PlaywrightError as e:
            logger.debug(f"⌨️ [PlaywrightBrowser] fill 失败，改用键盘输入: {e}")
            await page.click(selector)
            await page.keyboard.type(text, delay=50)

    async def close(self) -> None:
        """关闭本任务的浏览器上下文"""
        async with self._lock:
            if self._context is not None:
                await self._context.close()
                logger.debug("🌐 [PlaywrightBrowser] 任务浏览器上下文已关闭")
            self._context = None
            self._page = None
