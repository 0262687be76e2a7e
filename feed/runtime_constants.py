# 피드 클라이언트 상수를 여기에 정의
# 현장에서 바꿀 일이 있는 건 --addr 하나뿐

# endpoint
DEFAULT_FEED_ADDR = "wss://stats.goerli.net/primus/"  # 기본 ethstats primus 주소

# protocol
READY_TAG = "ready"  # 접속 직후 한 번만 보내는 태그
INIT_TAG = "init"    # 노드 스냅샷을 싣고 오는 태그
NODES_KEY = "nodes"  # init 페이로드 안의 노드 목록 키

# shutdown
CLOSE_CODE_NORMAL = 1000  # close frame 상태 코드 (normal closure)
CLOSE_GRACE_SEC = 1.0     # 인터럽트 후 close 응답을 기다리는 최대 시간(s)

# output
JSON_INDENT = 2  # stdout 출력 들여쓰기
