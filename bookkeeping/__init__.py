"""
Bookkeeping - 업무 처리 계층

- handlers: 업무 요청 타입별 Handler
- executor: 요청 타입별 Handler 디스패치
- reconciler: 잔액 캐시 정합성 검사
"""
