"""Transform pipeline: classification, strategy selection, invocation, jobs."""
