from .title_streams import TitleStreamsUseCase

__all__ = ["TitleStreamsUseCase"]
