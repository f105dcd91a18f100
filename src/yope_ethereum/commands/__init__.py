"""
Commands - CLI command implementations.

- contract: create / modify / run a contract
- resume:   wait for transactions journalled by an interrupted command
"""
