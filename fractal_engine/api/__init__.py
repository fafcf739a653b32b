from fractal_engine.api.render_api import ParametersBuilder, CallbackHandler, RenderAPI

__all__ = ["ParametersBuilder", "CallbackHandler", "RenderAPI"]
