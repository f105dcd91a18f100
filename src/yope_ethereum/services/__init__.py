"""
Services - Contract workflow built on the node layer.

- contract: deploy / modify / run operations with the gas guard
- receipts: receipt polling and the pending-transaction journal
"""
