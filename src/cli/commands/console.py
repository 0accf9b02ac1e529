# ANSI colors
RESET   = "\033[0m"
BOLD    = "\033[1m"

CYAN    = "\033[36m"
GREEN   = "\033[32m"
YELLOW  = "\033[33m"
MAGENTA = "\033[35m"
RED     = "\033[31m"
GREY    = "\033[90m"

RULE = GREY + "─────────────────────────────────────────────" + RESET
