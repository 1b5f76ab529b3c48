"""Call-Framework Analysis Pipeline.

Scores recorded sales calls against methodology frameworks:
  1. Resource Loader (methodology, definition, examples, checklist)
  2. Prompt Builder (enhanced / basic)
  3. Generation Client (external, see call_analyzer.collectors)
  4. Response Recovery Pipeline (extract, repair, truncate, fallback)
  5. Schema Validator
  6. Citation Validator
  7. Call/Framework Orchestrator
  8. Aggregator

Input:  call ids + framework ids
Output: AggregateAnalysis (JSON-serializable via to_dict())
"""
