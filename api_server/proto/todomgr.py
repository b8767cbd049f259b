"""Protobuf messages and gRPC stubs for the TodoManager backend service.

``todomgr.proto`` is compiled by grpcio-tools when this module is imported,
yielding the usual ``todomgr_pb2`` / ``todomgr_pb2_grpc`` modules.
"""

import grpc

PROTO_PATH = "api_server/proto/todomgr.proto"

# Resolved against sys.path, like an import.
todomgr_pb2, todomgr_pb2_grpc = grpc.protos_and_services(PROTO_PATH)

Todo = todomgr_pb2.Todo
ListTodosReq = todomgr_pb2.ListTodosReq
TodoIdReq = todomgr_pb2.TodoIdReq
DeleteTodoRes = todomgr_pb2.DeleteTodoRes

TodoManagerStub = todomgr_pb2_grpc.TodoManagerStub
TodoManagerServicer = todomgr_pb2_grpc.TodoManagerServicer
add_TodoManagerServicer_to_server = todomgr_pb2_grpc.add_TodoManagerServicer_to_server

SERVICE_NAME = todomgr_pb2.DESCRIPTOR.services_by_name["TodoManager"].full_name
