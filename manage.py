#!/usr/bin/env python3
"""
TIMS Invoice Reverser — operator CLI

Runs pipeline stages without the HTTP server, shows progress, or starts
the trigger API.
Usage: python manage.py <command> [options]
"""

import asyncio
import logging
import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "backend"))


# ═══════════════════════════════════════════════════════════
#  Logging Setup
# ═══════════════════════════════════════════════════════════

class ColorFormatter(logging.Formatter):
    """Colors CLI lines by marker: [STEP], [SUCCESS], [ERROR] or '===' headers."""

    COLORS = {
        "INFO": "\033[96m",
        "SUCCESS": "\033[92m",
        "WARNING": "\033[93m",
        "ERROR": "\033[91m",
        "HEADER": "\033[95m",
        "BOLD": "\033[1m",
        "RESET": "\033[0m",
    }

    MARKERS = (
        ("[SUCCESS]", "✓", "SUCCESS"),
        ("[ERROR]", "✗", "ERROR"),
        ("[STEP]", "▶", "INFO"),
    )

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        text = record.getMessage()
        color = "HEADER" if text.lstrip().startswith("===") else record.levelname

        for marker, symbol, marker_color in self.MARKERS:
            if marker in text:
                text = f"{symbol} {text.replace(marker, '').strip()}"
                color = marker_color
                break

        code = self.COLORS.get(color, "") if self.use_colors else ""
        return f"{code}{text}{self.COLORS['RESET']}" if code else text


def _build_logger() -> logging.Logger:
    """CLI chatter goes to the console and a dated file; pipeline logs stay structlog."""
    log_dir = "logs"
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, f"manage-{datetime.now():%Y%m%d}.log")

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColorFormatter())

    cli_logger = logging.getLogger("manage")
    cli_logger.setLevel(logging.INFO)
    cli_logger.handlers = [file_handler, console_handler]
    cli_logger.propagate = False
    return cli_logger


logger = _build_logger()


# ═══════════════════════════════════════════════════════════
#  Stage Manager
# ═══════════════════════════════════════════════════════════

class StageManager:
    """Runs and inspects pipeline stages from the command line."""

    def __init__(self):
        from invoice_reverser.core.config import settings
        from invoice_reverser.core.logging import setup_logging

        self.settings = settings
        setup_logging(settings.log_level)

    def _runner(self):
        from invoice_reverser.pipeline.engine import StageRunner
        from invoice_reverser.pipeline.services import StageServices

        return StageRunner(StageServices.from_settings(self.settings))

    def _report(self, result) -> None:
        counts = ", ".join(f"{k}={v}" for k, v in sorted(result.counts.items())) or "no records"
        logger.info(f"[SUCCESS] Step {result.stage} ({result.stage_name}) {result.status}: {counts}")

    def run_stage(self, number: int) -> None:
        logger.info(f"\n=== Step {number} ===")
        result = asyncio.run(self._runner().run(number))
        self._report(result)

    def run_all(self) -> None:
        logger.info("\n=== Steps 1 → 5 ===")
        for result in asyncio.run(self._runner().run_sequence()):
            self._report(result)

    def status(self) -> None:
        from invoice_reverser.core.constants import ARTIFACT_DIRS, CHECKPOINT_FILES, StageNumber
        from invoice_reverser.pipeline.services import StageServices

        services = StageServices.from_settings(self.settings)
        logger.info(f"\n=== Stage Status ({os.path.abspath(self.settings.DATA_DIR)}) ===")
        for stage in StageNumber:
            line = (
                f"  Step {int(stage)} {ARTIFACT_DIRS[stage]:<24} "
                f"ok={len(services.artifacts.success_keys(stage)):<5} "
                f"errors={len(services.artifacts.error_keys(stage)):<5}"
            )
            if stage in CHECKPOINT_FILES:
                line += f" checkpointed={len(services.checkpoints(stage))}"
            logger.info(line)

    def serve(self, port: int | None = None) -> None:
        import uvicorn

        port = port or self.settings.PORT
        logger.info(f"[STEP] TIMS Invoice Reverser listening at http://localhost:{port}")
        uvicorn.run("invoice_reverser.main:app", host="0.0.0.0", port=port)


# ═══════════════════════════════════════════════════════════
#  CLI
# ═══════════════════════════════════════════════════════════

USAGE = f"""
{ColorFormatter.COLORS['HEADER']}TIMS Invoice Reverser — Operator CLI{ColorFormatter.COLORS['RESET']}
{'═' * 50}

{ColorFormatter.COLORS['BOLD']}Usage:{ColorFormatter.COLORS['RESET']} python manage.py <command> [options]

{ColorFormatter.COLORS['BOLD']}Commands:{ColorFormatter.COLORS['RESET']}
    {ColorFormatter.COLORS['INFO']}run-stage N{ColorFormatter.COLORS['RESET']}     Run one stage (1-5)
    {ColorFormatter.COLORS['INFO']}run-all{ColorFormatter.COLORS['RESET']}         Run stages 1 → 5, stopping at the first error
    {ColorFormatter.COLORS['INFO']}status{ColorFormatter.COLORS['RESET']}          Show artifact & checkpoint counts per stage
    {ColorFormatter.COLORS['INFO']}serve{ColorFormatter.COLORS['RESET']}           Start the trigger API (--port=N, default $PORT)

{ColorFormatter.COLORS['BOLD']}Examples:{ColorFormatter.COLORS['RESET']}
    python manage.py run-stage 1         # Fetch invoice items
    python manage.py status
    python manage.py serve --port=3000
"""


def main() -> None:
    if len(sys.argv) < 2 or sys.argv[1] in ("-h", "--help"):
        print(USAGE)
        sys.exit(0)

    command = sys.argv[1]
    opts = sys.argv[2:]

    try:
        mgr = StageManager()
        if command == "run-stage":
            if not opts or not opts[0].isdigit():
                logger.error("run-stage needs a stage number")
                print(USAGE)
                sys.exit(1)
            mgr.run_stage(int(opts[0]))
        elif command == "run-all":
            mgr.run_all()
        elif command == "status":
            mgr.status()
        elif command == "serve":
            port = None
            for o in opts:
                if o.startswith("--port="):
                    port = int(o.split("=", 1)[1])
            mgr.serve(port=port)
        else:
            logger.error(f"Unknown command: {command}")
            print(USAGE)
            sys.exit(1)
    except Exception as exc:
        logger.error(f"[ERROR] Operation failed: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
