"""Request tracing: contextvar-bound trace contexts, spans, events and sinks."""
