"""
Essay endpoints, one POST route per prompt template.
"""

from essay_api.api.v1.essay import create_essay_router

__all__ = ["create_essay_router"]
