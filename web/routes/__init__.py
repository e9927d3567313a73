"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- ledger: 잔액/거래 내역/정합성 조회, 거래 취소
- operations: 업무 요청 기록
"""
