__title__ = 'ttl_memo'
__description__ = 'Memoizing decorator with per-entry TTL expiry and cycle-safe argument keys'
__url__ = 'https://github.com/ttl-memo/ttl_memo'
__version__ = '2026.10.19'
__author__ = 'ttl_memo contributors'
__author_email__ = ''
