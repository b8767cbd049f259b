"""HTTP gateway for the TodoManager gRPC service."""
