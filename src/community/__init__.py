"""Bean lifecycle demonstration wired by `beanbind`.

- `dao`: two interchangeable `AlphaDao` repositories, one named, one primary.
- `service`: a prototype `AlphaService` that reports construction, init and destroy.
- `config`: a configuration class exposing a bean built from a plain class.
- `application`: context bootstrap and the `python -m community` entry point.
"""
