"""On-chain program layouts, instruction encoding and solvency math."""
