# backend/app/notion/__init__.py

"""
Notion 連携用モジュール群。

主な責務:
- Notion API からデータベーススキーマを取得する（TTL キャッシュ付き）
- ページプロパティの値を種別ごとにデコードする
"""
