"""Message store providers

Components:
    base.py: MessageStore abstract base class and MessageStoreError
    gmail_store.py: Gmail API implementation over aiohttp
"""
