from .jackett_gateway import JackettGateway

__all__ = ["JackettGateway"]
