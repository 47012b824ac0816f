from .discovery import KNOWN_DEVICES, DeviceDescriptor, discover_device, find_device
from .focus import FOCUS_BAUDRATE, Focus
from .reply import CollectorState, ReplyCollector, collect_reply, normalize_reply
from .request import build_frame, iter_chunks, send_request
