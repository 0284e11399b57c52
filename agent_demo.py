#!/usr/bin/env python3
"""
Demo CLI for the ReAct task engine.

Runs tasks typed on the console through the full reason → act → observe loop
with the LLM reasoner, Playwright and desktop screenshots. Dangerous actions
are confirmed on stdin.
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add parent directory to path to import react_engine
sys.path.insert(0, str(Path(__file__).parent))

from loguru import logger

from config.settings import DesktopAckMode, Settings
from react_engine import ActionExecutor, LLMReasoner, Observer, TaskController
from react_engine.events import (
    COMMAND_EXECUTE,
    TASK_COMPLETED,
    TASK_CONFIRMATION_REQUIRED,
    TASK_FAILED,
    TASK_STARTED,
    TASK_STEP,
)
from react_engine.log import setup_logging
from react_engine.services import BrowserManager, DesktopCommandChannel, ScreenshotService

SESSION_ID = "console"


def print_banner():
    """Print welcome banner."""
    print("=" * 60)
    print("  ReAct Task Engine - Demo")
    print("=" * 60)
    print()


def print_help():
    """Print help information."""
    print("\n💡 Help:")
    print("-" * 60)
    print("  • Type a task and press Enter, e.g. 'open example.com'")
    print("  • Answer y/n when a dangerous action asks for confirmation")
    print("  • Press Ctrl+C while a task runs to cancel it")
    print("  • Type 'quit' or 'exit' to exit")
    print()


class ConsoleTransport:
    """Prints task events and asks for confirmations on stdin."""

    def __init__(self, controller_ref: dict):
        self._controller_ref = controller_ref
        self._pending_prompt = None

    async def emit(self, event, payload):
        if event == TASK_STARTED:
            print(f"\n🚀 Task {payload['taskId']} started")
        elif event == TASK_STEP:
            print(f"  [{payload['step']}] {payload['phase']:<9} {payload['message']}")
        elif event == TASK_CONFIRMATION_REQUIRED:
            self._pending_prompt = asyncio.ensure_future(self._ask(payload))
        elif event == COMMAND_EXECUTE:
            print(f"  🖥️  {payload['command']} {json.dumps(payload['params'], ensure_ascii=False)}")
        elif event == TASK_COMPLETED:
            status = "✅" if payload["success"] else "⚠️"
            print(f"\n{status} Finished: outcome={payload['outcome']}, steps={payload['steps']}, "
                  f"duration={payload['duration']}ms")
            for error in payload["errors"]:
                print(f"   • {error}")
        elif event == TASK_FAILED:
            print(f"\n❌ Failed: {payload['error']}")

    async def _ask(self, payload):
        loop = asyncio.get_running_loop()
        action = payload["action"]
        print(f"\n🔐 {payload['message']}")
        print(f"   {json.dumps(action['params'], ensure_ascii=False)}")
        answer = await loop.run_in_executor(None, input, "   Approve? [y/N]: ")
        self._controller_ref["controller"].confirm(SESSION_ID, answer.strip().lower() in ("y", "yes"))


def build_controller(settings: Settings, transport: ConsoleTransport):
    """Wire the controller with the LLM reasoner, Playwright and screenshots."""
    channel = DesktopCommandChannel(transport, mode=settings.desktop_ack_mode)
    executor = ActionExecutor.with_channels(channel, settings)
    screenshots = ScreenshotService(settings.screenshot_dir)
    browser_manager = BrowserManager(
        headless=settings.browser_headless,
        slow_mo_ms=settings.browser_slow_mo_ms,
        timeout_ms=settings.browser_timeout_ms,
    )
    controller = TaskController.from_settings(
        reasoner=LLMReasoner.from_settings(settings),
        executor=executor,
        observer=Observer(screenshots=screenshots),
        browser_factory=browser_manager.session,
        settings=settings,
    )
    return controller, browser_manager, screenshots


async def run_task(controller: TaskController, description: str, transport: ConsoleTransport):
    runner = asyncio.ensure_future(controller.start(SESSION_ID, description, transport))
    try:
        await asyncio.shield(runner)
    except (KeyboardInterrupt, asyncio.CancelledError):
        print("\n🛑 Cancelling...")
        await controller.cancel(SESSION_ID, transport)
        await runner


def settings_from_args(args) -> Settings:
    """Apply command line overrides on top of env / .env settings."""
    settings = Settings()
    if args.max_steps:
        settings.max_steps = args.max_steps
    if args.headless:
        settings.browser_headless = True
    # 控制台没有桌面代理回执，除非显式要求等待回执
    if not args.wait_ack:
        settings.desktop_ack_mode = DesktopAckMode.OPTIMISTIC
    return settings


async def main_async(args):
    settings = settings_from_args(args)
    setup_logging(settings, level=args.log_level)

    controller_ref = {}
    transport = ConsoleTransport(controller_ref)
    controller, browser_manager, screenshots = build_controller(settings, transport)
    controller_ref["controller"] = controller

    print_banner()
    if not settings.reasoner_llm_url:
        print("❌ REASONER_LLM_URL is not configured. Set it in the environment or .env")
        return

    if args.task:
        await run_task(controller, args.task, transport)
        await browser_manager.close()
        return

    print_help()
    loop = asyncio.get_running_loop()
    try:
        while True:
            user_input = (await loop.run_in_executor(None, input, "\n💬 Task: ")).strip()
            if not user_input:
                continue
            if user_input.lower() in ["quit", "exit", "bye"]:
                print("\n👋 Goodbye!")
                break
            if user_input.lower() == "help":
                print_help()
                continue

            try:
                await run_task(controller, user_input, transport)
            except ValueError as e:
                print(f"\n❌ {e}")
    finally:
        removed = screenshots.cleanup()
        logger.debug(f"🧹 [Demo] 清理了 {removed} 张过期截图")
        await browser_manager.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="ReAct Task Engine - 控制台演示")
    parser.add_argument("--task", type=str, help="直接运行一个任务后退出")
    parser.add_argument("--max-steps", type=int, help="覆盖最大步数")
    parser.add_argument("--headless", action="store_true", help="无头浏览器")
    parser.add_argument(
        "--wait-ack",
        action="store_true",
        help="等待桌面端回执（需要外部桌面代理调用 acknowledge；默认不等待）",
    )
    parser.add_argument("--log-level", type=str, default="WARNING", help="日志级别（默认 WARNING）")
    return parser


def main():
    """Main demo function."""
    args = build_parser().parse_args()

    try:
        asyncio.run(main_async(args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")


if __name__ == "__main__":
    main()
