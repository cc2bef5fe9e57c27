from __future__ import annotations

from llm_quota.cli import main as run

if __name__ == "__main__":
    run()
