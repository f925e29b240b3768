"""
Reminder Background Worker Runner
Run this as a separate process from the project root: python run_worker.py
(or use the installed `vetbook-worker` command)
"""

from vetbook.worker import main

if __name__ == "__main__":
    main()
