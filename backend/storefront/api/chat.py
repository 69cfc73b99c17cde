"""
Live Chat API Endpoints

REST:
- GET  /api/v1/chat/settings                 - Public widget settings
- GET  /api/v1/chat/admin/chats              - Admin inbox
- GET  /api/v1/chat/admin/chats/{id}         - Conversation (marks it read)
- POST /api/v1/chat/admin/chats/{id}/reply   - Reply as the active agent
- POST /api/v1/chat/admin/chats/{id}/close   - Close a conversation
- ...

WebSocket:
- /api/v1/chat/ws/visitor/{visitor_id}?name=&email=
- /api/v1/chat/ws/admin?token=<jwt>

Socket frames are JSON objects {"event": name, "data": payload}.

Author: TM3
Date: 2025-10-17
"""
import json
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from storefront.core.auth import TokenUser, require_admin, resolve_token
from storefront.core.rate_limit import get_client_ip
from storefront.domain.chat import (
    Chat,
    ChatMessage,
    ChatSettingsUpdate,
    AdminReplyRequest,
    VisitorMessageRequest,
)
from storefront.services.chat_service import ChatService, get_chat_service
from storefront.services.chat_connections import ConnectionManager, get_connection_manager

logger = logging.getLogger(__name__)

# ============================================================================
# ROUTER
# ============================================================================

router = APIRouter(prefix="/api/v1/chat", tags=["Live Chat"])


# ============================================================================
# FAN-OUT HELPERS
# ============================================================================

def _message_payload(chat: Chat, message: ChatMessage) -> dict:
    return {"chatId": chat.id, "visitorId": chat.visitor_id, "message": message.model_dump()}


async def push_messages(manager: ConnectionManager, chat: Chat, messages: List[ChatMessage]) -> None:
    """New messages go to the visitor's tabs and every admin"""
    for message in messages:
        payload = _message_payload(chat, message)
        await manager.send_to_visitor(chat.visitor_id, "chat:new_message", payload)
        await manager.broadcast_admins("chat:new_message", payload)
    await manager.broadcast_admins("chat:updated", chat.to_dict(include_messages=False))


async def push_closed(manager: ConnectionManager, chat: Chat, message: ChatMessage) -> None:
    await push_messages(manager, chat, [message])
    await manager.send_to_visitor(chat.visitor_id, "chat:closed", {"chatId": chat.id})
    await manager.broadcast_admins("chat:closed", {"chatId": chat.id})


async def push_read(manager: ConnectionManager, chat_id: int) -> None:
    await manager.broadcast_admins("chat:read_update", {"chatId": chat_id, "unreadCount": 0})


# ============================================================================
# PUBLIC
# ============================================================================

@router.get("/settings")
async def get_widget_settings(service: ChatService = Depends(get_chat_service)):
    """Settings the storefront widget needs before connecting"""
    try:
        chat_settings = service.get_settings()
        return {
            "status": "success",
            "data": {
                "is_online": chat_settings.is_online,
                "welcome_message": chat_settings.welcome_message,
                "offline_message": chat_settings.offline_message,
                "business_hours_start": chat_settings.business_hours_start,
                "business_hours_end": chat_settings.business_hours_end,
                "agent_name": chat_settings.active_agent_name,
                "agent_avatar": chat_settings.active_agent_avatar,
            }
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching chat settings: {str(e)}")


# ============================================================================
# ADMIN (REST)
# ============================================================================

@router.get("/admin/chats")
async def list_chats(
    chat_status: Optional[str] = Query(None, alias="status", description="active, waiting, pending, closed"),
    search: Optional[str] = Query(None, description="Visitor name, email or id"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    try:
        result = service.list_chats(status=chat_status, search=search, page=page, limit=limit)
        for chat in result["chats"]:
            chat["is_online"] = manager.is_visitor_online(chat["visitor_id"])

        return {
            "status": "success",
            "data": result["chats"],
            "pagination": result["pagination"],
            "status_counts": result["status_counts"]
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching chats: {str(e)}")


@router.get("/admin/stats")
async def get_online_stats(
    admin: TokenUser = Depends(require_admin),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    return {
        "status": "success",
        "data": manager.stats()
    }


@router.get("/admin/chats/{chat_id}")
async def get_chat(
    chat_id: int,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    """Full conversation; visitor messages are marked read"""
    try:
        chat = service.get_chat(chat_id)
        if not chat:
            raise HTTPException(status_code=404, detail="Chat not found")

        await push_read(manager, chat_id)
        data = chat.to_dict()
        data["is_online"] = manager.is_visitor_online(chat.visitor_id)
        return {
            "status": "success",
            "data": data
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching chat: {str(e)}")


@router.post("/admin/chats/{chat_id}/reply")
async def reply_to_chat(
    chat_id: int,
    data: AdminReplyRequest,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    try:
        result = service.admin_reply(chat_id, data.text)
        if not result:
            raise HTTPException(status_code=404, detail="Chat not found")

        chat, message = result
        await push_messages(manager, chat, [message])
        return {
            "status": "success",
            "data": message.model_dump()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending reply: {str(e)}")


@router.patch("/admin/chats/{chat_id}/read")
async def mark_chat_read(
    chat_id: int,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    try:
        updated = service.mark_read(chat_id)
        await push_read(manager, chat_id)
        return {
            "status": "success",
            "data": {"marked_read": updated}
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error marking chat read: {str(e)}")


@router.post("/admin/chats/{chat_id}/close")
async def close_chat(
    chat_id: int,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service),
    manager: ConnectionManager = Depends(get_connection_manager)
):
    try:
        result = service.close(chat_id, admin.id)
        if not result:
            raise HTTPException(status_code=404, detail="Chat not found")

        chat, message = result
        await push_closed(manager, chat, message)
        return {
            "status": "success",
            "message": "Chat closed",
            "data": chat.to_dict(include_messages=False)
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error closing chat: {str(e)}")


@router.delete("/admin/chats/{chat_id}")
async def delete_chat(
    chat_id: int,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service)
):
    try:
        if not service.delete_chat(chat_id):
            raise HTTPException(status_code=404, detail="Chat not found")

        return {
            "status": "success",
            "message": "Chat deleted successfully"
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error deleting chat: {str(e)}")


@router.get("/admin/settings")
async def get_chat_settings(
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service)
):
    try:
        return {
            "status": "success",
            "data": service.get_settings().model_dump()
        }
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error fetching chat settings: {str(e)}")


@router.put("/admin/settings")
async def update_chat_settings(
    data: ChatSettingsUpdate,
    admin: TokenUser = Depends(require_admin),
    service: ChatService = Depends(get_chat_service)
):
    try:
        fields = data.model_dump(exclude_none=True)
        if not fields:
            raise HTTPException(status_code=400, detail="Nothing to update")

        return {
            "status": "success",
            "message": "Chat settings updated",
            "data": service.update_settings(fields).model_dump()
        }
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error updating chat settings: {str(e)}")


# ============================================================================
# WEBSOCKETS
# ============================================================================

def _read_frame(raw: str) -> tuple:
    frame = json.loads(raw)
    if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
        raise ValueError("Frames must be objects with an event name")
    data = frame.get("data") or {}
    if not isinstance(data, dict):
        raise ValueError("Frame data must be an object")
    return frame["event"], data


@router.websocket("/ws/visitor/{visitor_id}")
async def visitor_socket(
    websocket: WebSocket,
    visitor_id: str,
    name: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
):
    """
    Storefront chat widget connection

    Client events: visitor:message {text}, visitor:typing {isTyping}
    Server events: chat:history, chat:new_message, chat:admin_typing, chat:closed, chat:error
    """
    service = get_chat_service()
    manager = get_connection_manager()

    await manager.connect_visitor(visitor_id, websocket)
    try:
        chat, chat_settings = service.connect(
            visitor_id,
            visitor_name=name,
            visitor_email=email,
            ip=get_client_ip(websocket),
            user_agent=websocket.headers.get("user-agent"),
        )
    except Exception as e:
        logger.error(f"Chat connect failed for visitor {visitor_id}: {str(e)}")
        await manager.send(websocket, "chat:error", {"message": "Could not start chat. Please refresh."})
        manager.disconnect_visitor(visitor_id, websocket)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    await manager.send(websocket, "chat:history", {
        "chatId": chat.id,
        "messages": [message.model_dump() for message in chat.messages],
        "visitorName": chat.visitor_name,
        "visitorEmail": chat.visitor_email,
        "status": chat.status,
        "chatState": chat.state,
        "agentName": chat_settings.active_agent_name,
        "agentAvatar": chat_settings.active_agent_avatar,
        "isOnline": chat_settings.is_online,
    })
    await manager.broadcast_admins("chat:visitor_connected", chat.to_dict(include_messages=False))
    await manager.broadcast_admins("admin:stats", manager.stats())

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                event, data = _read_frame(raw)

                if event == "visitor:message":
                    request = VisitorMessageRequest(**data)
                    chat, messages = service.visitor_message(visitor_id, request.text)
                    await push_messages(manager, chat, messages)

                elif event == "visitor:typing":
                    await manager.broadcast_admins("chat:visitor_typing", {
                        "chatId": chat.id,
                        "visitorId": visitor_id,
                        "isTyping": bool(data.get("isTyping")),
                    })

                else:
                    await manager.send(websocket, "chat:error", {"message": f"Unknown event: {event}"})

            except (ValueError, LookupError) as e:
                await manager.send(websocket, "chat:error", {"message": str(e)})
            except Exception as e:
                logger.error(f"Chat error for visitor {visitor_id}: {str(e)}")
                await manager.send(websocket, "chat:error", {"message": "Failed to send message"})

    except WebSocketDisconnect:
        manager.disconnect_visitor(visitor_id, websocket)
        await manager.broadcast_admins("chat:visitor_disconnected", {"chatId": chat.id, "visitorId": visitor_id})
        await manager.broadcast_admins("admin:stats", manager.stats())


@router.websocket("/ws/admin")
async def admin_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
):
    """
    Back-office inbox connection (admin JWT in the token query parameter)

    Client events: admin:open_chat {chatId}, admin:reply {chatId, text},
                   admin:typing {chatId, isTyping}, admin:close_chat {chatId}, admin:stats
    Server events: admin:stats, chat:detail, chat:new_message, chat:updated,
                   chat:read_update, chat:closed, chat:visitor_typing,
                   chat:visitor_connected, chat:visitor_disconnected, chat:error
    """
    try:
        if not token:
            raise HTTPException(status_code=401, detail="Authentication required")
        admin = resolve_token(token)
        if admin.role != "admin":
            raise HTTPException(status_code=403, detail="Admin privileges required")
    except HTTPException as e:
        logger.warning(f"Rejected admin chat socket: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    service = get_chat_service()
    manager = get_connection_manager()

    await manager.connect_admin(websocket)
    await manager.broadcast_admins("admin:stats", manager.stats())

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                event, data = _read_frame(raw)

                if event == "admin:stats":
                    await manager.send(websocket, "admin:stats", manager.stats())

                elif event == "admin:open_chat":
                    chat = service.get_chat(int(data.get("chatId", 0)))
                    if not chat:
                        raise ValueError("Chat not found")
                    detail = chat.to_dict()
                    detail["is_online"] = manager.is_visitor_online(chat.visitor_id)
                    await manager.send(websocket, "chat:detail", detail)
                    await push_read(manager, chat.id)

                elif event == "admin:reply":
                    request = AdminReplyRequest(text=data.get("text") or "")
                    result = service.admin_reply(int(data.get("chatId", 0)), request.text)
                    if not result:
                        raise ValueError("Chat not found")
                    chat, message = result
                    await push_messages(manager, chat, [message])
                    await push_read(manager, chat.id)

                elif event == "admin:typing":
                    chat = service.get_chat(int(data.get("chatId", 0)), mark_read=False)
                    if chat:
                        await manager.send_to_visitor(chat.visitor_id, "chat:admin_typing", {
                            "chatId": chat.id,
                            "isTyping": bool(data.get("isTyping")),
                        })

                elif event == "admin:close_chat":
                    result = service.close(int(data.get("chatId", 0)), admin.id)
                    if not result:
                        raise ValueError("Chat not found")
                    chat, message = result
                    await push_closed(manager, chat, message)

                else:
                    await manager.send(websocket, "chat:error", {"message": f"Unknown event: {event}"})

            except ValueError as e:
                await manager.send(websocket, "chat:error", {"message": str(e)})
            except Exception as e:
                logger.error(f"Admin chat socket error: {str(e)}")
                await manager.send(websocket, "chat:error", {"message": "Something went wrong"})

    except WebSocketDisconnect:
        manager.disconnect_admin(websocket)
        await manager.broadcast_admins("admin:stats", manager.stats())
