from yield_router.adapters.feeds.defillama import DefiLlamaFeed

__all__ = ["DefiLlamaFeed"]
