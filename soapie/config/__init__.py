from soapie.config.settings import settings

__all__ = ["settings"]
