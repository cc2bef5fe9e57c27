from llm_quota.cli import main

main()
