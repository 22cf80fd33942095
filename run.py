#!/usr/bin/env python3
"""
Content Translator - Server Launcher
====================================
Launch the translation pipeline API.

Usage:
    python run.py
"""
import sys
import os
from pathlib import Path

# Add package to path if running directly
package_dir = Path(__file__).parent
if str(package_dir) not in sys.path:
    sys.path.insert(0, str(package_dir))

APP_DIR = os.environ.setdefault('CONTENT_TRANSLATOR_APP_DIR', str(package_dir))
os.makedirs(os.path.join(APP_DIR, 'logs'), exist_ok=True)


class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'


def print_banner(config):
    """Display startup banner"""
    url = f"http://{config.server.host}:{config.server.port}"
    print(f"\n{Colors.CYAN}{'='*60}{Colors.RESET}")
    print(f"{Colors.BOLD}{Colors.GREEN}  🌍 CONTENT TRANSLATOR{Colors.RESET}")
    print(f"{Colors.CYAN}{'='*60}{Colors.RESET}")
    print(f"  Server:   {url}")
    print(f"  Database: {config.paths.db_path}")
    print(f"  Source:   {config.pipeline.source_language}")
    print(f"{Colors.CYAN}{'='*60}{Colors.RESET}\n")


def main():
    """Main entry point"""
    from content_translator.config import config
    from content_translator.app import create_app

    print_banner(config)

    if config.ai.api_key:
        print(f"{Colors.GREEN}   ✓ AI gateway key configured{Colors.RESET}")
    else:
        print(f"{Colors.RED}   ⚠️  AI_GATEWAY_API_KEY is not set{Colors.RESET}")
        print(f"{Colors.YELLOW}   Translation and evaluation requests will fail{Colors.RESET}")
    print(f"\n{Colors.RED}   Press Ctrl+C to stop{Colors.RESET}\n")

    app = create_app()
    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
        use_reloader=False,
        threaded=True
    )


if __name__ == '__main__':
    main()
