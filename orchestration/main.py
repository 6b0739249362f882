"""
KZ Bot — Entry Point

Thin wrapper that delegates to bot/client.py.

Named main.py rather than bot.py: Python puts the script's directory at
sys.path[0], so a 'bot.py' here would shadow the top-level 'bot/' package.

To run: python orchestration/main.py
   or:  python -m bot.client
"""

from bot.client import run

if __name__ == "__main__":
    run()
