"""
Engine kernel test configuration.

Kernel tests are pure or run against MemoryStorage and mocked pools; none
of them needs a database or network.
"""
