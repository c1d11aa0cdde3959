"""gwsmail Test Suite

Test organization:
- unit/: Unit tests for individual modules
  - mail/: Address parsing, encoders, MIME builder, composer, reply threading
  - providers/: Gmail message store parsing and error mapping
  - tracking/: Pixel payload crypto and injection
- integration/: Reply composition against a local Gmail-shaped HTTP server

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/mail/
"""
