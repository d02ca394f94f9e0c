from .user_asset import UserAsset
