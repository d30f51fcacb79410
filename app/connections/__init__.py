"""
Connections app: student-to-student connection requests.

A request is sent by one student and accepted or rejected by the other.
Accepting a request opens a direct chat room for the pair (see signals.py).

Related apps:
    - authentication: User model
    - chat: RoomService.create_direct_room
"""
