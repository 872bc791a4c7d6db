"""
Profiler package — the synchronous, stateless profiling engine.

Modules
-------
tokenizer
    Line / cell splitting, structural validation and size guards.
column_profiler
    Value classification, per-column accumulation and numeric statistics.
fingerprint
    Content normalisation and the SHA-256 deduplication key.
text_utils
    Blank / trim rules shared by the modules above.
"""
