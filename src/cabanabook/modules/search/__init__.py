from cabanabook.modules.search.smart_search import SearchRequest, SmartSearch

__all__ = ["SearchRequest", "SmartSearch"]
