from __future__ import annotations

# Toolchain
RUSTUP_TIMEOUT_SECONDS = 5 * 60.0
COMPILE_TIMEOUT_SECONDS = 60 * 60.0

# Packaging tool, per attempt
BUNDLE_TIMEOUT_SECONDS = 30 * 60.0

# Object store transfers and signing service calls
STORE_TIMEOUT_SECONDS = 10 * 60.0
SIGNING_CALL_TIMEOUT_SECONDS = 2 * 60.0

# Best-effort cleanup commands (npm cache clean, brew cleanup)
CLEANUP_COMMAND_TIMEOUT_SECONDS = 10 * 60.0

# pgrep / pkill / xattr / open
PROCESS_CONTROL_TIMEOUT_SECONDS = 30.0

# Time a terminated app gets to exit before the next check
TERMINATE_SETTLE_SECONDS = 2.0
