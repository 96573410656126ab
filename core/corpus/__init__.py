"""core/corpus — exemplar corpus data model.

types.py:  CorpusEntry / CorpusIndex / StylePriors value objects, dict
           decoding, and integrity checks for the offline-built index.
"""
