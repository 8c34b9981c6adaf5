"""
認証情報まわりのモジュール群。

- encryption: Notion トークンの AES-256-GCM 暗号化・復号
- credentials: テンプレートから使える Notion トークンを探すリゾルバ
"""
