from .clock import FakeClock


__all__ = [
    'FakeClock',
]
