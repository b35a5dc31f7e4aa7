"""
Document model classes for docx_engine.

Import the classes from their modules (``docx_engine.models.paragraph``,
``docx_engine.models.table``, ...); the public ones are re-exported from
the top-level ``docx_engine`` package.
"""
