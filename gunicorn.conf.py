import os

# Bind to the port provided via the PORT environment variable, defaulting to
# 5000.
bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"

# Requests are short form posts and page renders, so plain sync workers are
# enough.  Each worker keeps its own page cache and checks the revision
# counters in the database before serving from it.
workers = int(os.getenv("WEB_CONCURRENCY", "2"))
timeout = 30
