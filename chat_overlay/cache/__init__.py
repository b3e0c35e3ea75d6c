"""API 쿼터 절약용 캐시"""
from .quota_cache import DEFAULT_TTL_MINUTES, QuotaCache, QuotaCacheEntry

__all__ = ["DEFAULT_TTL_MINUTES", "QuotaCache", "QuotaCacheEntry"]
