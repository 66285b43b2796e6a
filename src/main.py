"""Main application entry point.

Runs the FastAPI relay (port 8000) with the NiceGUI chat page mounted.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def run_integrated() -> None:
    """Run the relay with NiceGUI mounted on the same server.

    FastAPI serves /chat and /health, NiceGUI serves the page at /.
    """
    import uvicorn
    from nicegui import ui

    from src.api.app import create_app
    from src.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()

    ui.run_with(
        app,
        title="Artificial",
        favicon="✨",
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "artificial-chat-secret"),
    )

    port = int(os.getenv("PORT", "8000"))
    logger.info(f"Starting integrated server on http://localhost:{port}")
    logger.info(f"Chat relay available at http://localhost:{port}/chat")
    logger.info(f"Chat UI available at http://localhost:{port}/")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the relay and the chat page as separate processes.

    Relay on PORT (default 8000), NiceGUI on UI_PORT (default 8080). The UI
    reaches the relay through RELAY_URL, derived from PORT unless set.
    """
    import subprocess
    import time

    host = os.getenv("HOST", "0.0.0.0")
    relay_port = os.getenv("PORT", "8000")
    ui_env = {
        **os.environ,
        "RELAY_URL": os.getenv("RELAY_URL") or f"http://localhost:{relay_port}/chat",
    }

    commands = {
        "relay": (
            [
                sys.executable, "-m", "uvicorn", "src.api.app:create_app",
                "--factory", "--host", host, "--port", relay_port,
            ],
            None,
        ),
        "ui": ([sys.executable, "-c", "from src.ui.chat_page import main; main()"], ui_env),
    }

    processes = {}
    for name, (command, env) in commands.items():
        logger.info(f"Starting {name} process: {' '.join(command[2:])}")
        processes[name] = subprocess.Popen(command, env=env)

    try:
        while all(proc.poll() is None for proc in processes.values()):
            time.sleep(1)
        exited = [name for name, proc in processes.items() if proc.poll() is not None]
        logger.warning(f"Process exited: {', '.join(exited)}; stopping the rest")
    except KeyboardInterrupt:
        logger.info("Shutting down servers...")
    finally:
        for proc in processes.values():
            proc.terminate()
        for proc in processes.values():
            proc.wait()


def main() -> None:
    """Application entry point.

    Set RUN_MODE=separate to run the relay and NiceGUI as separate processes.
    Default is integrated mode (both on PORT, default 8000).
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting Artificial chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
