"""Event topics for the pub/sub notification layer.

Listeners subscribe with `pubsub.pub.subscribe(listener, TOPIC)` and must
accept exactly the keyword arguments documented for the topic.
"""

# session_id: str, chunk: Chunk
TRANSCRIPT_CHUNK_TOPIC = "transcript.chunk"

# session_id: str, batch: SuggestionBatch
TRANSCRIPT_SUGGESTIONS_TOPIC = "transcript.suggestions"

# action: str, task_id: str
TASKS_CHANGED_TOPIC = "tasks.changed"

TASK_CREATED = "created"
TASK_UPDATED = "updated"
TASK_REMOVED = "removed"
TASK_COLLECTED = "collected"  # dropped by garbage collection
