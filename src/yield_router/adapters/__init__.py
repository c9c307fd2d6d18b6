"""
Adapters: Concrete implementations of ports.

- Yield feeds (DefiLlama)
- Vault readers (YAML positions file)
- Transfer executors (dry run)
"""
