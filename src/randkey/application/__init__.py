from randkey.application.key_generator import CancellationSignal, RandomKeyGenerator

__all__ = ["CancellationSignal", "RandomKeyGenerator"]
