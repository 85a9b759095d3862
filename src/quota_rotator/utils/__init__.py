# src/quota_rotator/utils/__init__.py

from .credential_formatter import mask_secret

__all__ = ['mask_secret']
