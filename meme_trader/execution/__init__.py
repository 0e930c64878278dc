"""
Execution Pipeline
==================
Trade execution layer, one responsibility per module.

Components:
- instruction_factory: Trade intents and compute budget instructions
- quote_client: Jupiter quotes
- swap_builder: Jupiter swap transactions
- transaction_submitter: Decode, sign and send
- finality_verifier: Poll until finalized
- swapper: TradeExecutor composing all of the above
"""
