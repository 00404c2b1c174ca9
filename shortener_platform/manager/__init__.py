from .code_generator import SHORT_CODE_ALPHABET, ShortCodeGenerator
from .url_manager import CreatedUrl, RequestContext, UrlManager

__all__ = ["SHORT_CODE_ALPHABET", "ShortCodeGenerator", "CreatedUrl", "RequestContext", "UrlManager"]
