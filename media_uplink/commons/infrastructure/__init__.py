"""Storage providers shared by the worker and the submission path."""
