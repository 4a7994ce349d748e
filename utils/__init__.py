"""
Utilities Package

Organized by purpose:
- auth: password hashing, JWT handling, the credential store
- scheduling: HH:MM parsing and time-window arithmetic
- async_tools: per-key asyncio locks
- email: outbound SMTP delivery
- errors: error taxonomy and translation
- monitoring: structured logging and correlation IDs
- rate_limiting: sliding-window limiter for sensitive endpoints
"""
