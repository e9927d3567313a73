"""
어댑터 레이어

외부 저장소(SQLite)와의 연동을 담당.
드라이버 오류는 도메인 예외(PersistenceError)로 변환.
"""
